"""
Tests for the IA-Scan validation workflow.

Covers:
- Client creation from extracted and corrected fields
- Single product (scalar fields) and multi-product (old/new) scans
- Document link, follow-up and scan bookkeeping
- Not found / already validated
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from advisy.models import (
    AuditAction,
    AuditLog,
    DocumentScan,
    DocumentScanResult,
    SystemSetting,
)
from advisy.services.scan_validation import (
    ScanAlreadyValidatedError,
    ScanNotFoundError,
    ScanValidator,
    ValidationOptions,
    detected_product_from_dict,
)

CLIENT_FIELDS = [
    ("nom", "client", "Keller"),
    ("prenom", "client", "Anna"),
    ("date_naissance", "client", "12.05.1985"),
    ("email", "client", "anna.keller@example.ch"),
    ("npa", "client", "1003"),
    ("localite", "client", "Lausanne"),
]

CONTRACT_FIELDS = [
    ("compagnie", "contract", "CSS"),
    ("type_produit", "contract", "LAMal"),
    ("produit", "contract", "LAMal Standard"),
    ("numero_police", "contract", "CSS-778"),
    ("date_debut", "contract", "01.01.2025"),
    ("prime_mensuelle", "premium", "CHF 320,40"),
    ("franchise", "premium", "2'500"),
]


async def _make_scan(db, fields, tenant_id="tenant-1", **kwargs):
    scan = DocumentScan(
        tenant_id=tenant_id,
        original_file_name="police_css.pdf",
        original_file_key="scans/police_css.pdf",
        detected_doc_type="police",
        overall_confidence=0.91,
        **kwargs,
    )
    db.add(scan)
    await db.flush()
    for name, category, value in fields:
        db.add(DocumentScanResult(
            scan_id=scan.id,
            field_name=name,
            field_category=category,
            extracted_value=value,
        ))
    await db.commit()
    return scan


class TestDetectedProductFromDict:
    def test_parses_text_values(self):
        product = detected_product_from_dict({
            "company": " CSS ",
            "product_name": "LAMal",
            "premium_monthly": "CHF 1'234.50",
            "franchise": 300,
            "start_date": "01.02.2025",
            "duration_years": "10 ans",
        })
        assert product.company == "CSS"
        assert product.premium_monthly == 1234.5
        assert product.franchise == 300.0
        assert product.start_date == date(2025, 2, 1)
        assert product.duration_years == 10
        assert product.end_date is None


class TestValidate:
    @pytest.mark.asyncio
    async def test_single_product_scan(self, db_session, context, catalog):
        scan = await _make_scan(db_session, CLIENT_FIELDS + CONTRACT_FIELDS)

        outcome = await ScanValidator(db_session, context).validate(scan.id, {"localite": "Pully"})

        client = outcome.client
        assert (client.first_name, client.last_name) == ("Anna", "Keller")
        assert client.birthdate == date(1985, 5, 12)
        assert client.city == "Pully"
        assert client.status == "prospect"
        assert client.tenant_id == context.tenant_id

        policy = outcome.report.created[0]
        assert policy.client_id == client.id
        assert policy.product_id == catalog["lamal"].id
        assert policy.premium_monthly == pytest.approx(320.40)
        assert policy.deductible == 2500
        assert policy.policy_number == "CSS-778"
        assert policy.start_date == date(2025, 1, 1)

        assert outcome.document.owner_id == client.id
        assert outcome.document.file_key == "scans/police_css.pdf"
        assert outcome.document.doc_metadata["scan_id"] == scan.id

        assert outcome.suivi.reminder_date == date.today() + timedelta(days=2)
        assert outcome.suivi.title == "Nouveau client - Anna Keller"
        assert "Contrat importé: CSS" in outcome.suivi.description
        assert outcome.created_items == ["Client", "Contrat", "Document", "Suivi"]

    @pytest.mark.asyncio
    async def test_scan_bookkeeping(self, db_session, context, catalog):
        scan = await _make_scan(db_session, CLIENT_FIELDS)

        await ScanValidator(db_session, context).validate(scan.id, {"nom": "Keller-Roth", "email": None})

        assert scan.status == "validated"
        assert scan.validated_by == context.user_id
        assert scan.validated_at is not None
        validated = {f.field_name: f.validated_value for f in scan.fields}
        assert validated["nom"] == "Keller-Roth"
        assert validated["email"] is None

        log = (await db_session.execute(select(AuditLog))).scalar_one()
        assert log.action == AuditAction.SCAN_VALIDATED
        assert log.target_id == scan.id
        assert log.action_metadata["policy_ids"] == []

    @pytest.mark.asyncio
    async def test_without_contract_data(self, db_session, context, catalog):
        scan = await _make_scan(db_session, CLIENT_FIELDS)

        outcome = await ScanValidator(db_session, context).validate(scan.id)

        assert outcome.report is None
        assert "Aucun contrat détecté." in outcome.suivi.description
        assert outcome.created_items == ["Client", "Document", "Suivi"]

    @pytest.mark.asyncio
    async def test_multi_product_scan_with_termination(self, db_session, context, catalog):
        scan = await _make_scan(
            db_session,
            CLIENT_FIELDS,
            detected_products={
                "old": [
                    {"company": "Groupe Mutuel", "product_name": "Basis", "product_category": "LAMal",
                     "premium_monthly": "410.20"},
                ],
                "new": [
                    {"company": "CSS", "product_name": "LAMal Standard", "product_category": "LAMal",
                     "premium_monthly": "320.40", "franchise": "2500"},
                    {"company": "AXA", "product_name": "SmartFlex 3a", "product_category": "3a",
                     "premium_monthly": 200},
                ],
                "termination": True,
            },
            family_members=[
                {"first_name": "Léo", "birthdate": "03.04.2015", "relation_type": "enfant"},
                {"relation_type": "conjoint"},
            ],
        )

        outcome = await ScanValidator(db_session, context).validate(scan.id)

        report = outcome.report
        assert report.created_count == 3
        assert [(p.company_name, p.status) for p in report.created] == [
            ("Groupe Mutuel", "resilie"),
            ("CSS", "active"),
            ("AXA", "active"),
        ]
        assert [(m.first_name, m.last_name) for m in outcome.family_members] == [("Léo", "Keller")]

    @pytest.mark.asyncio
    async def test_options_disable_steps(self, db_session, context, catalog):
        scan = await _make_scan(db_session, CLIENT_FIELDS + CONTRACT_FIELDS)
        options = ValidationOptions(create_contract=False, create_suivi=False, link_document=False)

        outcome = await ScanValidator(db_session, context).validate(scan.id, options=options)

        assert outcome.report is None
        assert outcome.document is None
        assert outcome.suivi is None
        assert outcome.created_items == ["Client"]

    @pytest.mark.asyncio
    async def test_followup_days_setting(self, db_session, context, catalog):
        db_session.add(SystemSetting(key="scan_followup_days", value={"v": 5}))
        scan = await _make_scan(db_session, CLIENT_FIELDS)

        outcome = await ScanValidator(db_session, context).validate(scan.id)

        assert outcome.suivi.reminder_date == date.today() + timedelta(days=5)

    @pytest.mark.asyncio
    async def test_already_validated(self, db_session, context):
        scan = await _make_scan(db_session, CLIENT_FIELDS, status="validated")
        with pytest.raises(ScanAlreadyValidatedError):
            await ScanValidator(db_session, context).validate(scan.id)

    @pytest.mark.asyncio
    async def test_scan_of_other_tenant_not_found(self, db_session, context):
        scan = await _make_scan(db_session, CLIENT_FIELDS, tenant_id="tenant-2")
        with pytest.raises(ScanNotFoundError):
            await ScanValidator(db_session, context).validate(scan.id)
        with pytest.raises(ScanNotFoundError):
            await ScanValidator(db_session, context).validate(404)
