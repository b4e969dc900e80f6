"""Walk a swaption through its lifecycle.

Usage:
    python examples/run_swaption.py examples/fixings.yaml

Builds the contract with the Python DSL, elects "proceed" twice and prints
the obligations each election produces.
"""

import sys
from datetime import date

from universal import content_hash, elect, load_fixings
from universal.dsl import K, M, USD, actions, after, anytime, arrange, given_that, interest, libor, party

bank = party("highStreetBank")
corp = party("acmeCorp")

notional = 10 * M
coupon = "1.5"


def swap_leg(start: str, end: str):
    return (
        bank.gives(corp, libor(notional, start, end), USD),
        corp.gives(bank, interest(notional, "act/365", coupon, start, end), USD),
    )


def cancel():
    return corp.may(anytime("cancel", corp.gives(bank, 10 * K, USD)))


swaption = arrange(
    (bank | corp).may(
        given_that(
            "proceed",
            after("01/07/2015"),
            *swap_leg("01/04/2015", "01/07/2015"),
            then=actions(
                (bank | corp).may(
                    given_that(
                        "proceed",
                        after("01/10/2015"),
                        *swap_leg("01/07/2015", "01/10/2015"),
                        then=actions((bank | corp).may(anytime("dummy"))),
                    )
                ),
                cancel(),
            ),
        )
    ),
    cancel(),
)


def main(fixings_path: str):
    env = load_fixings(fixings_path).environment()
    tree = swaption
    print(f"contract {content_hash(tree)}")
    for at in (date(2015, 7, 2), date(2015, 10, 2)):
        result = elect(tree, corp, "proceed", at, env)
        print(f"{at}: proceed")
        for obligation in result.effects:
            print(f"  {obligation}")
        tree = result.successor
        print(f"  -> {content_hash(tree)}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "examples/fixings.yaml")
