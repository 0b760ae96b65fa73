"""In-memory ledger hosting ERC-721 record contracts.

Behaves like an Ownable ERC-721 with safeMint(to, uri): only the
contract owner may mint, every mint emits a Transfer event from the zero
address, and token ids are assigned from a per-contract counter that
other sessions may advance concurrently.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from eth_utils import to_checksum_address

from auditmarket.application.ports.signer import SignerProtocol
from auditmarket.domain.errors import ExternalServiceError
from auditmarket.domain.models.certificate import (
    TRANSFER_EVENT_TOPIC,
    ZERO_ADDRESS,
    LedgerLog,
    LedgerReceipt,
    address_to_topic,
    int_to_topic,
    topic_to_address,
)
from auditmarket.domain.models.common import same_address


@dataclass
class _RecordContract:
    address: str
    owner: str
    name: str
    symbol: str
    next_token_id: int = 1
    token_uris: dict[int, str] = field(default_factory=dict)
    logs: list[LedgerLog] = field(default_factory=list)


@dataclass(frozen=True)
class MintCall:
    """A captured mint attempt."""

    contract_address: str
    recipient: str
    token_uri: str
    signer_address: str


class InMemoryLedger:
    """In-memory implementation of LedgerProtocol.

    Attributes:
        mint_calls: Every mint attempt, including failed ones.
        deploy_calls: (owner, name, symbol) of every deployment attempt.
    """

    def __init__(self, explorer_url: str = "https://curtis.explorer.caldera.xyz") -> None:
        self._explorer_url = explorer_url.rstrip("/")
        self._contracts: dict[str, _RecordContract] = {}
        self._tx_counter = 0
        self._mint_failures = 0
        self._deploy_failures = 0
        self._failure_reason = "execution reverted: insufficient funds for gas"
        self._interleave_with: str | None = None
        self.mint_calls: list[MintCall] = []
        self.deploy_calls: list[tuple[str, str, str]] = []

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._contracts.clear()
        self._tx_counter = 0
        self._mint_failures = 0
        self._deploy_failures = 0
        self._interleave_with = None
        self.mint_calls.clear()
        self.deploy_calls.clear()

    def fail_next_mints(self, count: int = 1, reason: str | None = None) -> None:
        """Make the next count mints fail with ExternalServiceError."""
        self._mint_failures = count
        if reason:
            self._failure_reason = reason

    def fail_next_deploys(self, count: int = 1) -> None:
        self._deploy_failures = count

    def interleave_next_mint(self, other_recipient: str) -> None:
        """Let another session mint to other_recipient inside the next mint's block."""
        self._interleave_with = to_checksum_address(other_recipient)

    def _next_tx(self) -> str:
        self._tx_counter += 1
        return "0x" + hashlib.sha256(f"tx:{self._tx_counter}".encode()).hexdigest()

    def _contract(self, address: str) -> _RecordContract:
        contract = self._contracts.get(address.lower())
        if contract is None:
            raise ExternalServiceError(
                step="mint",
                service="ledger",
                reason=f"no contract deployed at {address}",
            )
        return contract

    async def deploy_record_contract(
        self,
        owner: str,
        name: str,
        symbol: str,
        signer: SignerProtocol,
    ) -> str:
        self.deploy_calls.append((owner, name, symbol))
        if self._deploy_failures > 0:
            self._deploy_failures -= 1
            raise ExternalServiceError(
                step="deploy", service="ledger", reason=self._failure_reason
            )
        seed = f"{owner.lower()}:{name}:{symbol}:{len(self._contracts)}"
        address = to_checksum_address("0x" + hashlib.sha256(seed.encode()).hexdigest()[:40])
        self._contracts[address.lower()] = _RecordContract(
            address=address, owner=to_checksum_address(owner), name=name, symbol=symbol
        )
        self._next_tx()
        return address

    def _transfer(self, contract: _RecordContract, recipient: str, token_uri: str) -> LedgerLog:
        token_id = contract.next_token_id
        contract.next_token_id += 1
        contract.token_uris[token_id] = token_uri
        log = LedgerLog(
            address=contract.address,
            topics=(
                TRANSFER_EVENT_TOPIC,
                address_to_topic(ZERO_ADDRESS),
                address_to_topic(recipient),
                int_to_topic(token_id),
            ),
        )
        contract.logs.append(log)
        return log

    async def mint(
        self,
        contract_address: str,
        recipient: str,
        token_uri: str,
        signer: SignerProtocol,
    ) -> LedgerReceipt:
        self.mint_calls.append(
            MintCall(contract_address, recipient, token_uri, signer.address)
        )
        if self._mint_failures > 0:
            self._mint_failures -= 1
            raise ExternalServiceError(step="mint", service="ledger", reason=self._failure_reason)

        contract = self._contract(contract_address)
        if not same_address(signer.address, contract.owner):
            raise ExternalServiceError(
                step="mint",
                service="ledger",
                reason=f"OwnableUnauthorizedAccount({signer.address})",
            )

        logs = []
        if self._interleave_with is not None:
            logs.append(self._transfer(contract, self._interleave_with, "ipfs://other"))
            self._interleave_with = None
        logs.append(self._transfer(contract, recipient, token_uri))
        return LedgerReceipt(
            transaction_id=self._next_tx(),
            logs=tuple(logs),
            block_number=self._tx_counter,
        )

    async def get_logs(
        self,
        contract_address: str,
        recipient: str | None = None,
    ) -> list[LedgerLog]:
        contract = self._contract(contract_address)
        return [
            log
            for log in contract.logs
            if recipient is None or same_address(topic_to_address(log.topics[2]), recipient)
        ]

    async def token_uri(self, contract_address: str, record_id: int) -> str | None:
        return self._contract(contract_address).token_uris.get(record_id)

    def explorer_url(self, transaction_id: str) -> str:
        return f"{self._explorer_url}/tx/{transaction_id}"

    def owner_of_contract(self, contract_address: str) -> str:
        return self._contract(contract_address).owner
