"""EVM ledger adapter over web3.py (async).

Deploys Ownable ERC-721 record contracts from a compiled artifact and
mints with safeMint(to, uri). Each call builds exactly one transaction,
signs it with the caller's signer, sends it, and waits for the receipt.
Nothing is retried here; the lifecycle controller retries on the
content identifier it already holds.

The artifact is the compiler output JSON with an "abi" list and a
"bytecode" string (or a {"object": "..."} mapping as Foundry emits).
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog
from eth_utils import to_checksum_address
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, Web3Exception

from auditmarket.application.ports.signer import SignerProtocol
from auditmarket.config.marketplace_config import LedgerConfig
from auditmarket.domain.errors import ExternalServiceError
from auditmarket.domain.models.certificate import (
    TRANSFER_EVENT_TOPIC,
    LedgerLog,
    LedgerReceipt,
    address_to_topic,
)

log = structlog.get_logger()

SERVICE = "ledger"

_LEDGER_ERRORS = (Web3Exception, OSError, asyncio.TimeoutError, ValueError)


def load_contract_artifact(path: str | Path) -> tuple[list[dict[str, Any]], str]:
    """Read (abi, bytecode) from a compiled contract artifact.

    Raises:
        ValueError: If the file lacks an ABI or bytecode.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    abi = data.get("abi")
    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(abi, list) or not isinstance(bytecode, str) or not bytecode:
        raise ValueError(f"{path} is not a compiled contract artifact (abi + bytecode)")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return abi, bytecode


def _to_ledger_log(entry: Any) -> LedgerLog:
    return LedgerLog(
        address=to_checksum_address(entry["address"]),
        topics=tuple(Web3.to_hex(t) for t in entry["topics"]),
        data=Web3.to_hex(entry["data"]) if entry.get("data") else "0x",
    )


class Web3Ledger:
    """LedgerProtocol implementation for an EVM JSON-RPC endpoint.

    Args:
        config: Ledger configuration.
        abi: Record contract ABI.
        bytecode: Record contract creation bytecode.
        web3: Optional preconfigured AsyncWeb3 (tests inject one).
    """

    def __init__(
        self,
        config: LedgerConfig,
        abi: list[dict[str, Any]],
        bytecode: str,
        web3: AsyncWeb3 | None = None,
    ) -> None:
        self._config = config
        self._abi = abi
        self._bytecode = bytecode
        self._w3 = web3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.rpc_url))

    @classmethod
    def from_config(cls, config: LedgerConfig) -> Web3Ledger:
        if not config.contract_artifact:
            raise ValueError("LEDGER_CONTRACT_ARTIFACT is required for the web3 ledger")
        abi, bytecode = load_contract_artifact(config.contract_artifact)
        return cls(config, abi, bytecode)

    async def _send(
        self,
        build: Any,
        signer: SignerProtocol,
        step: str,
    ) -> Any:
        """Build, sign, send and await one transaction."""
        nonce = await self._w3.eth.get_transaction_count(signer.address)
        transaction = await build.build_transaction(
            {
                "from": signer.address,
                "nonce": nonce,
                "chainId": self._config.chain_id,
            }
        )
        raw = signer.sign_transaction(dict(transaction))
        tx_hash = await self._w3.eth.send_raw_transaction(raw)
        log.info("ledger_transaction_sent", step=step, tx_hash=Web3.to_hex(tx_hash))
        return await self._w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._config.receipt_timeout_seconds
        )

    async def deploy_record_contract(
        self,
        owner: str,
        name: str,
        symbol: str,
        signer: SignerProtocol,
    ) -> str:
        factory = self._w3.eth.contract(abi=self._abi, bytecode=self._bytecode)
        try:
            receipt = await self._send(
                factory.constructor(name, symbol, to_checksum_address(owner)),
                signer,
                "deploy",
            )
        except _LEDGER_ERRORS as exc:
            raise ExternalServiceError(
                step="deploy", service=SERVICE, reason=str(exc) or type(exc).__name__
            ) from exc

        if receipt["status"] != 1 or not receipt.get("contractAddress"):
            raise ExternalServiceError(
                step="deploy", service=SERVICE, reason="deployment reverted"
            )
        address = to_checksum_address(receipt["contractAddress"])
        log.info("record_contract_deployed", address=address, name=name, symbol=symbol)
        return address

    async def mint(
        self,
        contract_address: str,
        recipient: str,
        token_uri: str,
        signer: SignerProtocol,
    ) -> LedgerReceipt:
        contract = self._w3.eth.contract(
            address=to_checksum_address(contract_address), abi=self._abi
        )
        try:
            receipt = await self._send(
                contract.functions.safeMint(to_checksum_address(recipient), token_uri),
                signer,
                "mint",
            )
        except _LEDGER_ERRORS as exc:
            raise ExternalServiceError(
                step="mint", service=SERVICE, reason=str(exc) or type(exc).__name__
            ) from exc

        return LedgerReceipt(
            transaction_id=Web3.to_hex(receipt["transactionHash"]),
            logs=tuple(_to_ledger_log(entry) for entry in receipt["logs"]),
            block_number=receipt.get("blockNumber"),
            succeeded=receipt["status"] == 1,
        )

    async def get_logs(
        self,
        contract_address: str,
        recipient: str | None = None,
    ) -> list[LedgerLog]:
        topics: list[Any] = [TRANSFER_EVENT_TOPIC]
        if recipient is not None:
            topics += [None, address_to_topic(recipient)]
        try:
            entries = await self._w3.eth.get_logs(
                {
                    "address": to_checksum_address(contract_address),
                    "fromBlock": 0,
                    "toBlock": "latest",
                    "topics": topics,
                }
            )
        except _LEDGER_ERRORS as exc:
            raise ExternalServiceError(
                step="get_logs", service=SERVICE, reason=str(exc) or type(exc).__name__
            ) from exc
        return [_to_ledger_log(entry) for entry in entries]

    async def token_uri(self, contract_address: str, record_id: int) -> str | None:
        contract = self._w3.eth.contract(
            address=to_checksum_address(contract_address), abi=self._abi
        )
        try:
            return await contract.functions.tokenURI(record_id).call()
        except ContractLogicError:
            # ERC721NonexistentToken
            return None
        except _LEDGER_ERRORS as exc:
            raise ExternalServiceError(
                step="token_uri", service=SERVICE, reason=str(exc) or type(exc).__name__
            ) from exc

    def explorer_url(self, transaction_id: str) -> str:
        return f"{self._config.explorer_url.rstrip('/')}/tx/{transaction_id}"
