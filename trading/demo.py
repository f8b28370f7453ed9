"""
Demonstration scripts for the trade-offer exchange.

Each function builds a fresh exchange, drives the offer service through one
scenario, drains the notification pipeline and prints the emails that came
out the other end.
"""

import logging

from exchange.channels import DeliveryResult
from exchange.config import configure_logging
from exchange.errors import TradeError
from trading.wiring import ExchangeContainer, build_exchange

logger = logging.getLogger("demo")

ALICE = "user-001"
BOB = "user-002"
CAROL = "user-003"

ZELDA = "item-001"    # owned by Alice
METROID = "item-002"  # owned by Bob


def _start_exchange() -> ExchangeContainer:
    exchange = build_exchange()
    # The demos drive the consumer by hand so output appears in order
    exchange.start(run_consumer=False)
    return exchange


def _deliver(exchange: ExchangeContainer) -> list[DeliveryResult]:
    """Push everything published so far through to the inbox."""
    exchange.publisher.flush(timeout=5.0)
    exchange.consumer.consume_available()
    return list(exchange.channel.sent_messages)


def _print_header(title: str) -> None:
    print("\n" + "=" * 70)
    print(f"TRADE-OFFER DEMO: {title}")
    print("=" * 70 + "\n")


def _print_action(text: str) -> None:
    print("-" * 70)
    print(f"ACTION: {text}")
    print("-" * 70 + "\n")


def _print_sent(messages: list[DeliveryResult]) -> None:
    print("\nNotifications sent:")
    for msg in messages:
        print(f"  {msg}")


def run_accepted_demo() -> list[DeliveryResult]:
    """
    Demonstrate an offer that is created and then accepted.

    This shows:
    1. Alice offers her Zelda cartridge for Bob's Metroid
    2. Bob is told he received an offer, Alice gets a confirmation
    3. Bob accepts; both are told
    4. A second answer from Bob is refused: the offer is no longer pending
    """
    _print_header("Offer Accepted")
    exchange = _start_exchange()

    try:
        _print_action("Alice offers The Legend of Zelda for Bob's Metroid")
        offer = exchange.service.create_offer(
            ALICE, requested_item_id=METROID, offered_item_id=ZELDA
        )
        print(f"Offer {offer.id} is {offer.status}")

        _print_action("Bob accepts the offer")
        offer = exchange.service.update_status(BOB, offer.id, "accepted")
        print(f"Offer {offer.id} is {offer.status}")

        _print_action("Bob tries to reject the same offer")
        try:
            exchange.service.update_status(BOB, offer.id, "rejected")
        except TradeError as e:
            print(f"Refused ({e.code}): {e.message}")

        messages = _deliver(exchange)
        _print_sent(messages)
        return messages
    finally:
        exchange.shutdown()


def run_rejected_demo() -> list[DeliveryResult]:
    """Demonstrate an offer that the recipient declines."""
    _print_header("Offer Rejected")
    exchange = _start_exchange()

    try:
        _print_action("Alice offers The Legend of Zelda for Bob's Metroid")
        offer = exchange.service.create_offer(
            ALICE, requested_item_id=METROID, offered_item_id=ZELDA
        )

        _print_action("Bob declines the offer")
        offer = exchange.service.update_status(BOB, offer.id, "rejected")
        print(f"Offer {offer.id} is {offer.status}")

        messages = _deliver(exchange)
        _print_sent(messages)
        return messages
    finally:
        exchange.shutdown()


def run_unauthorized_demo() -> list[DeliveryResult]:
    """
    Demonstrate that only the recipient can answer an offer.

    Carol tries to accept an offer addressed to Bob. The call fails, the
    offer stays pending, and only the two creation emails go out.
    """
    _print_header("Unauthorized Answer")
    exchange = _start_exchange()

    try:
        _print_action("Alice offers The Legend of Zelda for Bob's Metroid")
        offer = exchange.service.create_offer(
            ALICE, requested_item_id=METROID, offered_item_id=ZELDA
        )

        _print_action("Carol tries to accept Bob's offer")
        try:
            exchange.service.update_status(CAROL, offer.id, "accepted")
        except TradeError as e:
            print(f"Refused ({e.code}): {e.message}")

        offer = exchange.service.get_offer(offer.id)
        print(f"Offer {offer.id} is still {offer.status}")

        messages = _deliver(exchange)
        _print_sent(messages)
        return messages
    finally:
        exchange.shutdown()


SCENARIOS = {
    "accepted": run_accepted_demo,
    "rejected": run_rejected_demo,
    "unauthorized": run_unauthorized_demo,
}


if __name__ == "__main__":
    configure_logging()
    print("\nRunning Trade-Offer Demos")
    print("=" * 70)

    for run in SCENARIOS.values():
        run()
        print("\n")
