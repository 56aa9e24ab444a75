import json
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.urls import reverse

from catalog.models import AddOnOption, SaleCatalogItem
from materials.models import SupplierMaterialItem

from . import services
from .models import CostItem, CostItemKind, Job, JobLineItem


class JobServiceTestBase(TestCase):
    def setUp(self):
        self.sheet = SupplierMaterialItem.objects.create(
            name="Foamex 5mm",
            supplier_name="Boards Ltd",
            item_type="measured",
            price=Decimal("20"),
            length=Decimal("1"),
            width=Decimal("1"),
            measurement_unit="m",
        )
        self.board = SaleCatalogItem.objects.create(
            name="Foamex sign",
            item_type="measured",
            price=Decimal("40"),
            measurement_unit="sq_m",
        )
        self.board.linked_materials.add(self.sheet)
        self.eyelets = AddOnOption.objects.create(item=self.board, name="Eyelets", price=Decimal("2"))
        self.job = Job.objects.create(customer_name="Acme", reference="Shop front")

    def priced_line(self):
        line = services.add_line(self.job)
        services.select_catalog_item(line, self.board)
        line.length = Decimal("1.5")
        line.width = Decimal("0.5")
        line.unit = "m"
        line.save()
        services.set_selected_add_ons(line, [self.eyelets.id])
        return line


class LineMutationTests(JobServiceTestBase):
    def test_job_number_is_generated(self):
        self.assertTrue(self.job.job_number.startswith("JOB-"))

    def test_job_str(self):
        self.assertEqual(str(self.job), f"{self.job.job_number} - Acme (Draft)")

    def test_add_line_defaults(self):
        first = services.add_line(self.job)
        second = services.add_line(self.job, description="Delivery", unit_price=Decimal("15"))
        self.assertEqual(first.position, 0)
        self.assertEqual(second.position, 1)
        self.assertEqual(first.vat_rate, Decimal("20"))
        self.assertEqual(first.quantity, 1)

    @override_settings(JOB_COSTING={"DEFAULT_VAT_RATE": "5"})
    def test_add_line_reads_configured_vat_rate(self):
        line = services.add_line(self.job)
        self.assertEqual(line.vat_rate, Decimal("5"))

    def test_select_catalog_item_links_materials(self):
        line = services.add_line(self.job)
        services.add_manual_cost_item(line, manual_cost=Decimal("3"))
        services.select_catalog_item(line, self.board)

        line.refresh_from_db()
        self.assertEqual(line.description, "Foamex sign")
        self.assertEqual(line.unit, "sq_m")
        self.assertEqual(line.vat_rate, Decimal("20"))
        costs = list(line.cost_items.all())
        self.assertEqual(len(costs), 1)
        self.assertEqual(costs[0].kind, CostItemKind.LINKED)
        self.assertEqual(costs[0].material, self.sheet)
        self.assertIsNone(costs[0].cost_vat_rate)

    def test_select_catalog_item_uses_item_vat_rate(self):
        self.board.vat_rate = Decimal("0")
        self.board.save()
        line = services.add_line(self.job)
        services.select_catalog_item(line, self.board)
        self.assertEqual(line.vat_rate, Decimal("0"))

    def test_selected_add_ons_are_filtered(self):
        line = services.add_line(self.job)
        services.select_catalog_item(line, self.board)
        stranger = AddOnOption.objects.create(
            item=SaleCatalogItem.objects.create(name="Other"), name="Gloss", price=Decimal("1"),
        )
        kept = services.set_selected_add_ons(line, [self.eyelets.id, stranger.id, self.eyelets.id])
        self.assertEqual(kept, [str(self.eyelets.id)])

    def test_manual_cost_item_defaults(self):
        line = services.add_line(self.job)
        cost = services.add_manual_cost_item(line)
        self.assertEqual(cost.kind, CostItemKind.MANUAL)
        self.assertEqual(cost.description, "New Manual Cost")
        self.assertIsNone(cost.cost_vat_rate)


class SaveAndConvertTests(JobServiceTestBase):
    def test_save_requires_customer_and_reference(self):
        self.job.reference = "  "
        with self.assertRaises(services.JobValidationError) as ctx:
            services.save_job(self.job)
        self.assertIn("Customer and Reference must be filled in", ctx.exception.messages[0])
        self.assertIsInstance(ctx.exception, ValidationError)

    def test_save_snapshots_totals_and_commits_costs(self):
        line = self.priced_line()
        totals = services.save_job(self.job)

        self.job.refresh_from_db()
        self.assertEqual(self.job.status, Job.Status.SAVED)
        self.assertIsNotNone(self.job.saved_at)
        self.assertEqual(self.job.total_sale, Decimal("32.00"))
        self.assertEqual(self.job.total_cost, Decimal("40.00"))
        self.assertEqual(self.job.gross_profit, Decimal("-8.00"))
        self.assertEqual(totals.total_vat, Decimal("6.4"))

        cost = line.cost_items.get()
        self.assertEqual(cost.proportional_cost, Decimal("15.0000"))
        self.assertEqual(cost.wastage_cost, Decimal("25.0000"))
        self.assertEqual(cost.total_material_cost, Decimal("40.0000"))
        self.assertEqual(cost.cost_vat, Decimal("8.0000"))

    def test_unchanged_cost_item_is_not_rewritten(self):
        line = self.priced_line()
        services.save_job(self.job)

        line = JobLineItem.objects.prefetch_related("cost_items").get(pk=line.pk)
        context = services.build_context(self.job, [line])
        cost = line.cost_items.all()[0]
        result = services.commit_line(line, context).cost_items[0]
        self.assertFalse(services.apply_cost_result(cost, result))

    def test_snapshot_goes_stale_until_next_save(self):
        self.priced_line()
        services.save_job(self.job)
        SaleCatalogItem.objects.filter(pk=self.board.pk).update(price=Decimal("60"))

        self.job.refresh_from_db()
        self.assertEqual(self.job.total_sale, Decimal("32.00"))
        _results, live = services.current_totals(self.job)
        self.assertEqual(live.total_sale, Decimal("47"))

        services.save_job(self.job)
        self.job.refresh_from_db()
        self.assertEqual(self.job.total_sale, Decimal("47.00"))

    def test_deleted_material_costs_zero(self):
        line = self.priced_line()
        self.sheet.delete()
        services.save_job(self.job)

        self.job.refresh_from_db()
        self.assertEqual(self.job.total_cost, Decimal("0.00"))
        self.assertEqual(line.cost_items.get().total_material_cost, Decimal("0"))

    def test_deleted_catalog_item_falls_back_to_manual_price(self):
        line = self.priced_line()
        line.unit_price = Decimal("12.50")
        line.save()
        self.board.delete()
        services.save_job(self.job)

        self.job.refresh_from_db()
        self.assertEqual(self.job.total_sale, Decimal("12.50"))

    def test_manual_costs_and_discount(self):
        line = services.add_line(
            self.job, description="Fitting", unit_price=Decimal("100"),
            discount_type="percentage", discount_value=Decimal("10"),
        )
        services.add_manual_cost_item(line, "Fitter", Decimal("30"), Decimal("20"))
        totals = services.save_job(self.job)

        self.assertEqual(totals.total_sale, Decimal("90"))
        self.assertEqual(totals.total_cost, Decimal("30"))
        self.assertEqual(totals.total_cost_vat, Decimal("6"))

    def test_inclusive_job(self):
        self.job.tax_mode = "inclusive"
        self.job.save()
        services.add_line(self.job, unit_price=Decimal("120"))
        totals = services.save_job(self.job)
        self.assertEqual(totals.total_sale, Decimal("100"))
        self.assertEqual(totals.total_gross, Decimal("120"))

    def test_convert_to_invoice(self):
        self.priced_line()
        services.convert_job(self.job, "invoice")
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, Job.Status.INVOICED)
        self.assertEqual(self.job.total_sale, Decimal("32.00"))

    def test_convert_to_quote(self):
        services.convert_job(self.job, "quote")
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, Job.Status.QUOTED)

    def test_convert_rejects_unknown_target(self):
        with self.assertRaises(ValueError):
            services.convert_job(self.job, "receipt")

    def test_convert_validates_header(self):
        self.job.customer_name = ""
        with self.assertRaises(services.JobValidationError):
            services.convert_job(self.job, "quote")
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, Job.Status.DRAFT)


class ModelValidationTests(JobServiceTestBase):
    def test_negative_discount_rejected(self):
        line = services.add_line(self.job)
        line.discount_value = Decimal("-1")
        with self.assertRaises(ValidationError):
            line.full_clean()

    def test_linked_cost_item_needs_material(self):
        line = services.add_line(self.job)
        with self.assertRaises(ValidationError):
            CostItem(line=line, kind=CostItemKind.LINKED).full_clean()


class AdminEditTests(JobServiceTestBase):
    def setUp(self):
        super().setUp()
        from django.contrib.auth import get_user_model

        admin_user = get_user_model().objects.create_superuser("admin", "admin@example.com", "pass")
        self.client.force_login(admin_user)
        self.stranger = AddOnOption.objects.create(
            item=SaleCatalogItem.objects.create(name="Mug", price=Decimal("8")),
            name="Gift box",
            price=Decimal("1.50"),
        )

    def line_form_data(self, **overrides):
        data = {
            "job": str(self.job.pk),
            "position": "0",
            "catalog_item": str(self.board.pk),
            "description": "",
            "quantity": "1",
            "unit_price": "",
            "length": "1.5",
            "width": "0.5",
            "unit": "m",
            "selected_add_on_ids": json.dumps([str(self.eyelets.id), str(self.stranger.id)]),
            "discount_type": "fixed",
            "discount_value": "0.00",
            "vat_rate": "20.00",
            "cost_items-TOTAL_FORMS": "0",
            "cost_items-INITIAL_FORMS": "0",
            "cost_items-MIN_NUM_FORMS": "0",
            "cost_items-MAX_NUM_FORMS": "1000",
            "_save": "Save",
        }
        data.update(overrides)
        return data

    def test_line_added_in_admin_is_seeded_from_catalog(self):
        response = self.client.post(reverse("admin:jobs_joblineitem_add"), self.line_form_data())
        self.assertEqual(response.status_code, 302)

        line = JobLineItem.objects.get(job=self.job)
        self.assertEqual(line.description, "Foamex sign")
        self.assertEqual(line.unit, "m")
        self.assertEqual(line.length, Decimal("1.5"))
        self.assertEqual(line.selected_add_on_ids, [str(self.eyelets.id)])

        cost = line.cost_items.get()
        self.assertEqual(cost.material, self.sheet)
        self.assertEqual(cost.total_material_cost, Decimal("40.0000"))

    def test_line_edit_filters_add_ons(self):
        line = self.priced_line()
        url = reverse("admin:jobs_joblineitem_change", args=[line.pk])
        data = self.line_form_data(**{
            "description": "Foamex sign",
            "cost_items-TOTAL_FORMS": "1",
            "cost_items-INITIAL_FORMS": "1",
            "cost_items-0-id": str(line.cost_items.get().pk),
            "cost_items-0-line": str(line.pk),
            "cost_items-0-kind": "linked",
            "cost_items-0-description": "Foamex 5mm",
            "cost_items-0-material": str(self.sheet.pk),
            "cost_items-0-manual_cost": "",
            "cost_items-0-cost_vat_rate": "",
        })
        response = self.client.post(url, data)
        self.assertEqual(response.status_code, 302)

        line.refresh_from_db()
        self.assertEqual(line.selected_add_on_ids, [str(self.eyelets.id)])
        self.assertEqual(line.cost_items.count(), 1)

    def test_changing_catalog_item_replaces_costs_and_add_ons(self):
        line = self.priced_line()
        mug = self.stranger.item
        line.catalog_item = mug
        line.selected_add_on_ids = [str(self.eyelets.id), str(self.stranger.id)]
        line.save()

        services.sync_edited_line(line, item_changed=True)
        line.refresh_from_db()
        self.assertEqual(line.description, "Mug")
        self.assertEqual(line.selected_add_on_ids, [str(self.stranger.id)])
        self.assertFalse(line.cost_items.exists())

    def test_job_inline_lines_are_seeded_and_committed(self):
        url = reverse("admin:jobs_job_change", args=[self.job.pk])
        data = {
            "customer_name": "Acme",
            "reference": "Shop front",
            "issue_date": "2026-01-05",
            "notes": "",
            "tax_mode": "exclusive",
            "line_items-TOTAL_FORMS": "1",
            "line_items-INITIAL_FORMS": "0",
            "line_items-MIN_NUM_FORMS": "0",
            "line_items-MAX_NUM_FORMS": "1000",
            "line_items-0-id": "",
            "line_items-0-job": str(self.job.pk),
            "line_items-0-position": "0",
            "line_items-0-catalog_item": str(self.board.pk),
            "line_items-0-description": "",
            "line_items-0-quantity": "1",
            "line_items-0-length": "1.5",
            "line_items-0-width": "0.5",
            "line_items-0-unit": "m",
            "line_items-0-vat_rate": "20.00",
            "_save": "Save",
        }
        response = self.client.post(url, data)
        self.assertEqual(response.status_code, 302)

        line = self.job.line_items.get()
        self.assertEqual(line.description, "Foamex sign")
        self.assertEqual(line.width, Decimal("0.5"))
        cost = line.cost_items.get()
        self.assertEqual(cost.material, self.sheet)
        self.assertEqual(cost.proportional_cost, Decimal("15.0000"))
        self.assertEqual(cost.total_material_cost, Decimal("40.0000"))
