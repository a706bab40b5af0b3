"""
IA-Scan validation workflow.

Once the broker has reviewed (and possibly corrected) the fields
extracted from a scanned document, validation turns the scan into CRM
records:
1. Prospect client from the client fields
2. Family members listed by the scan
3. Policies, through the contract reconciler
4. The scanned file attached to the client
5. A follow-up task to contact the new client
6. Scan marked validated, corrected values stored, audit entry

Steps 4 and 5 are best effort: a failure is logged and validation goes
on. Anything failing before them propagates to the caller.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from advisy.config import settings
from advisy.context import SessionContext
from advisy.models import (
    AuditAction,
    Client,
    Document,
    DocumentScan,
    FamilyMember,
    Suivi,
)
from advisy.services.contract_reconciler import (
    ContractReconciler,
    DetectedProduct,
    ReconciliationReport,
)
from advisy.utils.audit import log_action
from advisy.utils.parsing import clean_text, parse_amount, parse_date, parse_duration_years
from advisy.utils.settings import get_setting

logger = logging.getLogger(__name__)

VALIDATED = "validated"
CONTRACT_FIELD_CATEGORIES = ("contract", "premium")
DEFAULT_DOC_KIND = "police"
DOCUMENT_CATEGORY = "Contrats"
DEFAULT_MIME_TYPE = "application/pdf"

# Extracted field name -> clients column
CLIENT_FIELDS = {
    "nom": "last_name",
    "prenom": "first_name",
    "email": "email",
    "telephone": "phone",
    "adresse": "address",
    "npa": "postal_code",
    "localite": "city",
    "canton": "canton",
    "nationalite": "nationality",
}


class ScanNotFoundError(LookupError):
    pass


class ScanAlreadyValidatedError(Exception):
    pass


@dataclass
class ValidationOptions:
    create_contract: bool = True
    create_suivi: bool = True
    link_document: bool = True


@dataclass
class ValidationOutcome:
    """Records created by a validation."""

    client: Client
    report: Optional[ReconciliationReport] = None
    family_members: List[FamilyMember] = field(default_factory=list)
    document: Optional[Document] = None
    suivi: Optional[Suivi] = None

    @property
    def created_items(self) -> List[str]:
        items = ["Client"]
        if self.report and self.report.created_count:
            items.append("Contrat")
        if self.document:
            items.append("Document")
        if self.suivi:
            items.append("Suivi")
        return items


def detected_product_from_dict(data: dict) -> DetectedProduct:
    """Build a DetectedProduct from one entry of scan.detected_products."""
    return DetectedProduct(
        company=clean_text(data.get("company")),
        product_name=clean_text(data.get("product_name")),
        product_category=clean_text(data.get("product_category")),
        premium_monthly=parse_amount(data.get("premium_monthly")),
        franchise=parse_amount(data.get("franchise")),
        policy_number=clean_text(data.get("policy_number")),
        start_date=parse_date(data.get("start_date")),
        end_date=parse_date(data.get("end_date")),
        duration_years=parse_duration_years(data.get("duration_years")),
    )


class ScanValidator:
    """
    Applies a reviewed scan to the CRM.

    Usage:
        validator = ScanValidator(db, context)
        outcome = await validator.validate(scan_id, {"nom": "Muller"})
        await db.commit()
    """

    def __init__(
        self,
        db: AsyncSession,
        context: SessionContext,
        reconciler: Optional[ContractReconciler] = None,
    ) -> None:
        self.db = db
        self.context = context
        self.reconciler = reconciler or ContractReconciler(db, context)

    async def validate(
        self,
        scan_id: int,
        edited_values: Optional[Dict[str, Optional[str]]] = None,
        options: Optional[ValidationOptions] = None,
    ) -> ValidationOutcome:
        """
        Raises:
            ScanNotFoundError: no scan with this id in the tenant
            ScanAlreadyValidatedError: the scan was validated before
        """
        edited_values = edited_values or {}
        options = options or ValidationOptions()

        scan = await self._load_scan(scan_id)
        if scan.status == VALIDATED:
            raise ScanAlreadyValidatedError(f"Scan {scan_id} is already validated")

        values = self._merged_values(scan, edited_values)

        client = await self._create_client(values)
        outcome = ValidationOutcome(client=client)
        outcome.family_members = await self._add_family_members(client, scan.family_members or [])

        if options.create_contract:
            products = self._detected_products(scan, values)
            if products["new"] or products["old"]:
                outcome.report = await self.reconciler.reconcile(
                    client.id,
                    products["new"],
                    products["old"],
                    category_hint=values.get("type_produit") or values.get("categorie"),
                    termination=products["termination"],
                )

        if options.link_document and scan.original_file_key:
            outcome.document = await self._link_document(scan, client)

        if options.create_suivi:
            outcome.suivi = await self._create_suivi(client, values, outcome.report)

        scan.status = VALIDATED
        scan.validated_at = datetime.now(timezone.utc)
        scan.validated_by = self.context.user_id
        for result in scan.fields:
            if result.field_name in edited_values and edited_values[result.field_name] is not None:
                result.validated_value = edited_values[result.field_name]
        await self.db.flush()

        await log_action(
            self.db,
            self.context,
            AuditAction.SCAN_VALIDATED,
            target_type="scan",
            target_id=scan.id,
            action_metadata={
                "validated_values": edited_values,
                "client_id": client.id,
                "policy_ids": [p.id for p in outcome.report.created] if outcome.report else [],
                "options": asdict(options),
            },
        )

        logger.info(
            f"Scan {scan.id} validated: {', '.join(outcome.created_items)} "
            f"created for client {client.id}"
        )
        return outcome

    # ── Steps ────────────────────────────────────────────

    async def _load_scan(self, scan_id: int) -> DocumentScan:
        result = await self.db.execute(
            select(DocumentScan)
            .where(
                DocumentScan.id == scan_id,
                DocumentScan.tenant_id == self.context.tenant_id,
            )
            .options(selectinload(DocumentScan.fields))
            .execution_options(populate_existing=True)
        )
        scan = result.scalar_one_or_none()
        if not scan:
            raise ScanNotFoundError(f"Scan {scan_id} not found")
        return scan

    @staticmethod
    def _merged_values(scan: DocumentScan, edited_values: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
        """Extracted values overridden by the broker's corrections."""
        values = {f.field_name: f.extracted_value for f in scan.fields}
        for name, value in edited_values.items():
            if value is not None:
                values[name] = value
        return {name: clean_text(value) for name, value in values.items()}

    async def _create_client(self, values: Dict[str, Optional[str]]) -> Client:
        client = Client(
            tenant_id=self.context.tenant_id,
            birthdate=parse_date(values.get("date_naissance")),
            status="prospect",
            **{column: values.get(name) for name, column in CLIENT_FIELDS.items()},
        )
        self.db.add(client)
        await self.db.flush()
        logger.info(f"Created prospect client {client.id} from scan")
        return client

    async def _add_family_members(self, client: Client, members: List[dict]) -> List[FamilyMember]:
        added = []
        for member in members:
            if not (member.get("first_name") or member.get("last_name")):
                continue
            family_member = FamilyMember(
                client_id=client.id,
                first_name=clean_text(member.get("first_name")),
                last_name=clean_text(member.get("last_name")) or client.last_name,
                birthdate=parse_date(member.get("birthdate")),
                relation_type=clean_text(member.get("relation_type")) or "enfant",
            )
            self.db.add(family_member)
            added.append(family_member)
        if added:
            await self.db.flush()
        return added

    def _detected_products(self, scan: DocumentScan, values: Dict[str, Optional[str]]) -> dict:
        """
        Old/new product sets of the scan.

        Multi-product scans carry them in detected_products; otherwise a
        single new product is built from the contract fields.
        """
        detected = scan.detected_products or {}
        old = [detected_product_from_dict(p) for p in detected.get("old") or []]
        new = [detected_product_from_dict(p) for p in detected.get("new") or []]
        if old or new:
            return {"old": old, "new": new, "termination": bool(detected.get("termination"))}

        has_contract_data = any(
            f.field_category in CONTRACT_FIELD_CATEGORIES for f in scan.fields
        )
        if not has_contract_data:
            return {"old": [], "new": [], "termination": False}

        premium_monthly = parse_amount(values.get("prime_mensuelle"))
        if premium_monthly is None:
            premium_yearly = parse_amount(values.get("prime_annuelle"))
            if premium_yearly is not None:
                premium_monthly = premium_yearly / 12

        product = DetectedProduct(
            company=values.get("compagnie"),
            product_name=values.get("produit") or values.get("type_produit"),
            product_category=values.get("type_produit") or values.get("categorie"),
            premium_monthly=premium_monthly,
            franchise=parse_amount(values.get("franchise")),
            policy_number=values.get("numero_police"),
            start_date=parse_date(values.get("date_debut")),
            end_date=parse_date(values.get("date_fin")),
            duration_years=parse_duration_years(values.get("duree")),
        )
        return {"old": [], "new": [product], "termination": False}

    async def _link_document(self, scan: DocumentScan, client: Client) -> Optional[Document]:
        document = Document(
            tenant_id=self.context.tenant_id,
            owner_type="client",
            owner_id=client.id,
            file_name=scan.original_file_name or scan.original_file_key,
            file_key=scan.original_file_key,
            mime_type=DEFAULT_MIME_TYPE,
            doc_kind=scan.detected_doc_type or DEFAULT_DOC_KIND,
            category=DOCUMENT_CATEGORY,
            created_by=self.context.user_id,
            doc_metadata={
                "source": "ia_scan",
                "scan_id": scan.id,
                "detected_type": scan.detected_doc_type,
                "confidence": scan.overall_confidence,
            },
        )
        try:
            async with self.db.begin_nested():
                self.db.add(document)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Linking document of scan {scan.id} to client {client.id} failed: {e}")
            return None
        return document

    async def _create_suivi(
        self,
        client: Client,
        values: Dict[str, Optional[str]],
        report: Optional[ReconciliationReport],
    ) -> Optional[Suivi]:
        followup_days = await get_setting(self.db, "scan_followup_days", settings.scan_followup_days)

        if report and report.drafts:
            contracts = ", ".join(d.company_name or "N/A" for d in report.drafts)
            contract_line = f"Contrat importé: {contracts}"
        else:
            contract_line = "Aucun contrat détecté."

        suivi = Suivi(
            tenant_id=self.context.tenant_id,
            client_id=client.id,
            title=f"Nouveau client - {values.get('prenom') or ''} {values.get('nom') or ''}".strip(),
            description=(
                f"Client créé via IA Scan.\n{contract_line}\n\n"
                f"Vérifier les informations et contacter le client."
            ),
            type="activation",
            status="ouvert",
            reminder_date=date.today() + timedelta(days=int(followup_days)),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(suivi)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Follow-up creation for client {client.id} failed: {e}")
            return None
        return suivi
