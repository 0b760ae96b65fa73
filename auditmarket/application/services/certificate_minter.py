"""Certificate minter: binds an owner address to an evidence CID on the ledger.

One record contract is deployed per project on first use and reused for
every later mint. Each mint is a single safeMint transaction whose record
id is read from the ERC-721 Transfer event, never predicted from a
counter, because mints from other sessions can interleave.

The minter performs no retries. Retrying is the caller's decision and is
keyed on the content identifier, which the minter reports on failure.
"""

from __future__ import annotations

from auditmarket.application.ports.ledger import LedgerProtocol
from auditmarket.application.ports.signer import SignerProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.domain.errors import AuthorizationError, ExternalServiceError
from auditmarket.domain.models.certificate import (
    TRANSFER_EVENT_TOPIC,
    ZERO_ADDRESS,
    LedgerReceipt,
    MintReceipt,
    topic_to_address,
)
from auditmarket.domain.models.common import same_address
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)

MINT_STEP = "mint_certificate"
DEPLOY_STEP = "deploy_record_contract"


def extract_record_id(receipt: LedgerReceipt, recipient: str) -> int | None:
    """Find the token id minted to recipient in a receipt's Transfer logs.

    Only mints count: the Transfer must come from the zero address.
    """
    for log in receipt.logs:
        topics = log.topics
        if len(topics) < 4 or topics[0].lower() != TRANSFER_EVENT_TOPIC:
            continue
        if not same_address(topic_to_address(topics[1]), ZERO_ADDRESS):
            continue
        if same_address(topic_to_address(topics[2]), recipient):
            return int(topics[3], 16)
    return None


def token_uri_for(cid: str) -> str:
    return f"ipfs://{cid}"


class CertificateMinter(LoggingMixin):
    """Deploys record contracts and mints certificates."""

    def __init__(
        self,
        ledger: LedgerProtocol,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self._ledger = ledger
        self._metrics = metrics or get_pipeline_metrics()
        self._init_logger(component="certificate")

    async def ensure_contract(
        self,
        owner: str,
        signer: SignerProtocol,
        contract_address: str | None = None,
        name: str = "Audit Record",
        symbol: str = "AUDIT",
    ) -> str:
        """Return contract_address, deploying a record contract if it is None.

        Raises:
            AuthorizationError: If the signer is not the owner.
            ExternalServiceError: step="deploy_record_contract" on ledger faults.
        """
        if contract_address is not None:
            return contract_address
        self._check_authority(owner, signer, "deploy a record contract")

        log = self._log_operation("ensure_contract", owner=owner, symbol=symbol)
        try:
            address = await self._ledger.deploy_record_contract(owner, name, symbol, signer)
        except ExternalServiceError as exc:
            self._metrics.record_pipeline_failure(DEPLOY_STEP)
            log.error("record_contract_deploy_failed", reason=exc.reason)
            raise exc.with_context(DEPLOY_STEP) from exc
        log.info("record_contract_deployed", contract_address=address)
        return address

    async def mint(
        self,
        recipient: str,
        cid: str,
        signer: SignerProtocol,
        contract_address: str | None = None,
        name: str = "Audit Record",
        symbol: str = "AUDIT",
    ) -> MintReceipt:
        """Mint one certificate binding recipient to cid.

        Args:
            recipient: Owner of the certificate and of the record contract.
            cid: Content identifier of the already-published evidence.
            signer: Signer that must hold the recipient's authority.
            contract_address: Existing record contract, or None to deploy one.
            name: Contract name used when deploying.
            symbol: Contract symbol used when deploying.

        Returns:
            MintReceipt with the record id from the Transfer event.

        Raises:
            AuthorizationError: If signer.address is not the recipient.
            ExternalServiceError: step="mint_certificate" (or
                "deploy_record_contract") with cid set, on any ledger fault.
        """
        # Checked before any transaction is built or submitted
        self._check_authority(recipient, signer, "mint a certificate")

        log = self._log_operation("mint", recipient=recipient, cid=cid)

        try:
            contract = await self.ensure_contract(
                recipient, signer, contract_address, name=name, symbol=symbol
            )
        except ExternalServiceError as exc:
            raise exc.with_context(DEPLOY_STEP, cid=cid) from exc

        token_uri = token_uri_for(cid)
        try:
            receipt = await self._ledger.mint(contract, recipient, token_uri, signer)
        except ExternalServiceError as exc:
            self._metrics.record_pipeline_failure(MINT_STEP)
            log.error("mint_failed", contract_address=contract, reason=exc.reason)
            raise exc.with_context(MINT_STEP, cid=cid) from exc

        if not receipt.succeeded:
            self._metrics.record_pipeline_failure(MINT_STEP)
            log.error("mint_reverted", transaction_id=receipt.transaction_id)
            raise ExternalServiceError(
                step=MINT_STEP,
                service="ledger",
                reason=f"transaction {receipt.transaction_id} reverted",
                cid=cid,
            )

        record_id = extract_record_id(receipt, recipient)
        if record_id is None:
            self._metrics.record_pipeline_failure(MINT_STEP)
            log.error("transfer_event_missing", transaction_id=receipt.transaction_id)
            raise ExternalServiceError(
                step=MINT_STEP,
                service="ledger",
                reason=(
                    f"no Transfer event to {recipient} in transaction "
                    f"{receipt.transaction_id}"
                ),
                cid=cid,
            )

        log.info(
            "certificate_minted",
            record_id=record_id,
            transaction_id=receipt.transaction_id,
            contract_address=contract,
        )
        return MintReceipt(
            record_id=record_id,
            transaction_id=receipt.transaction_id,
            explorer_reference=self._ledger.explorer_url(receipt.transaction_id),
            contract_address=contract,
            token_uri=token_uri,
        )

    def _check_authority(self, owner: str, signer: SignerProtocol, action: str) -> None:
        if not same_address(signer.address, owner):
            self._log.warning(
                "signer_not_authorized",
                expected_address=owner,
                actual_address=signer.address,
                action=action,
            )
            raise AuthorizationError(
                expected_address=owner,
                actual_address=signer.address,
                action=action,
            )
