"""Certificate and ledger receipt models.

A certificate is a non-fungible ledger record binding an owner address to
the content identifier of an evidence document. The record id is always
read from the emitted ERC-721 Transfer event, never predicted from a
counter, since mints from other sessions can interleave.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class CertificateKind(Enum):
    """The three certificate tiers of an audit."""

    REQUEST = "request"
    OWNER = "owner"
    RESULT = "result"


@dataclass(frozen=True)
class LedgerLog:
    """An event log entry from a transaction receipt.

    Attributes:
        address: Contract that emitted the event.
        topics: 0x-prefixed 32-byte hex topics.
        data: 0x-prefixed hex payload.
    """

    address: str
    topics: tuple[str, ...]
    data: str = "0x"


@dataclass(frozen=True)
class LedgerReceipt:
    """Outcome of a submitted ledger transaction."""

    transaction_id: str
    logs: tuple[LedgerLog, ...] = field(default_factory=tuple)
    block_number: int | None = None
    succeeded: bool = True


@dataclass(frozen=True)
class MintReceipt:
    """Result of minting a certificate.

    Attributes:
        record_id: Token id extracted from the Transfer event.
        transaction_id: Mint transaction hash.
        explorer_reference: Block explorer URL for the transaction.
        contract_address: Record contract the token lives in.
        token_uri: ipfs:// URI of the evidence document.
    """

    record_id: int
    transaction_id: str
    explorer_reference: str
    contract_address: str
    token_uri: str


def topic_to_address(topic: str) -> str:
    """Decode an indexed address topic (left-padded to 32 bytes)."""
    return "0x" + topic.lower().removeprefix("0x")[-40:]


def address_to_topic(address: str) -> str:
    """Encode an address as an indexed 32-byte topic."""
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


def int_to_topic(value: int) -> str:
    """Encode an unsigned integer as an indexed 32-byte topic."""
    return "0x" + format(value, "064x")
