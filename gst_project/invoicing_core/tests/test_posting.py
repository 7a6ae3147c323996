from decimal import Decimal

from django.test import TestCase

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import AuditLog, Item, LineItem, Transaction
from ..services import create_transaction, update_transaction
from .helpers import line, make_company, make_item, make_party, make_scope, txn_request


class CreateTransactionTests(TestCase):
    def setUp(self):
        self.company = make_company("acme", state_code="27")
        self.scope = make_scope(self.company)
        self.widget = make_item(self.company, "Widget", stock=20, gst_rate="18")
        self.local = make_party(self.company, "Local Traders", gstin="27ABCDE1234F1Z5")
        self.remote = make_party(self.company, "UP Traders", gstin="09ABCDE1234F1Z5")

    def stock(self, item):
        return Item.objects.get(pk=item.pk).stock

    def test_sale_to_same_state_party_splits_tax_and_reduces_stock(self):
        txn = create_transaction(
            self.scope,
            txn_request("sale", "1", [line(self.widget, 10, "100")],
                        party=self.local, total="1180"),
        )

        self.assertEqual(txn.transaction_type, "sale")
        self.assertEqual(txn.status, "Draft")
        self.assertEqual(txn.party_gstin, "27ABCDE1234F1Z5")
        [posted] = txn.lines.all()
        self.assertEqual(posted.taxable_value, Decimal("1000"))
        self.assertEqual(posted.cgst, Decimal("90.00"))
        self.assertEqual(posted.sgst, Decimal("90.00"))
        self.assertEqual(posted.igst, Decimal("0.00"))
        self.assertEqual(posted.gst_rate, Decimal("18"))
        self.assertEqual(self.stock(self.widget), 10)

    def test_sale_to_other_state_party_is_igst(self):
        txn = create_transaction(
            self.scope,
            txn_request("sale", "1", [line(self.widget, 10, "100")],
                        party=self.remote, total="1180"),
        )

        [posted] = txn.lines.all()
        self.assertEqual((posted.cgst, posted.sgst), (Decimal("0"), Decimal("0")))
        self.assertEqual(posted.igst, Decimal("180.00"))

    def test_without_party_is_igst(self):
        txn = create_transaction(
            self.scope, txn_request("sale", "1", [line(self.widget, 1, "100")], total="118")
        )

        self.assertIsNone(txn.party)
        self.assertEqual(txn.party_gstin, "")
        self.assertEqual(txn.lines.get().igst, Decimal("18.00"))

    def test_stock_direction_by_type(self):
        expected = {
            "sale": 20 - 2,
            "purchaseReturn": 18 - 2,
            "purchase": 16 + 2,
            "saleReturn": 18 + 2,
            "estimate": 20,
            "saleOrder": 20,
            "purchaseOrder": 20,
            "paymentIn": 20,
            "paymentOut": 20,
            "expense": 20,
        }
        for transaction_type, stock in expected.items():
            create_transaction(
                self.scope,
                txn_request(transaction_type, "T-1", [line(self.widget, 2, "10")]),
            )
            self.assertEqual(self.stock(self.widget), stock, transaction_type)

    def test_lines_keep_request_order(self):
        other = make_item(self.company, "Gizmo", stock=5)
        txn = create_transaction(
            self.scope,
            txn_request("sale", "1", [line(other, 1), line(self.widget, 2), line(other, 3)]),
        )

        self.assertEqual(
            [(l.item_id, l.quantity) for l in txn.lines.all()],
            [(other.pk, 1), (self.widget.pk, 2), (other.pk, 3)],
        )
        # the same item on two lines is decremented by both
        self.assertEqual(self.stock(other), 1)

    def test_name_only_line_creates_item_seeded_from_the_line(self):
        txn = create_transaction(
            self.scope,
            txn_request(
                "purchase", "P-1",
                [line(name="Gadget", quantity=5, rate="40", gst_rate=Decimal("12"),
                      hsn_code="8471", unit="pcs")],
                party=self.local, total="224",
            ),
        )

        gadget = Item.objects.get(company=self.company, name="Gadget")
        self.assertEqual(gadget.sale_price, Decimal("40"))
        self.assertEqual(gadget.purchase_price, Decimal("40"))
        self.assertEqual(gadget.gst_rate, Decimal("12"))
        self.assertEqual(gadget.hsn_code, "8471")
        self.assertEqual(gadget.opening_stock, 0)
        # created at zero, then the purchase adds 5
        self.assertEqual(gadget.stock, 5)

        posted = txn.lines.get()
        self.assertEqual(posted.item_id, gadget.pk)
        self.assertEqual(posted.gst_rate, Decimal("12"))
        self.assertEqual(posted.hsn_code, "8471")

    def test_name_only_line_reuses_existing_item_without_changing_it(self):
        txn = create_transaction(
            self.scope,
            txn_request("sale", "1", [line(name="Widget", quantity=1, rate="55",
                                           gst_rate=Decimal("5"))]),
        )

        self.assertEqual(Item.objects.filter(company=self.company, name="Widget").count(), 1)
        widget = Item.objects.get(pk=self.widget.pk)
        self.assertEqual(widget.sale_price, Decimal("100"))
        self.assertEqual(widget.gst_rate, Decimal("18"))
        self.assertEqual(widget.stock, 19)
        # the item's own rate applies, not the one in the request
        self.assertEqual(txn.lines.get().gst_rate, Decimal("18"))

    def test_tax_snapshots_survive_item_changes(self):
        txn = create_transaction(
            self.scope,
            txn_request("sale", "1", [line(self.widget, 10, "100")], party=self.local),
        )

        self.widget.gst_rate = Decimal("5")
        self.widget.hsn_code = "0000"
        self.widget.save()

        posted = LineItem.objects.get(transaction=txn)
        self.assertEqual(posted.gst_rate, Decimal("18"))
        self.assertEqual(posted.cgst + posted.sgst, Decimal("180"))

    def test_missing_required_fields_are_rejected_before_any_write(self):
        with self.assertRaises(ValidationError) as ctx:
            create_transaction(self.scope, txn_request(None, None, [line(self.widget)], total=None))

        for name in ("type", "totalAmount", "transactionNumber"):
            self.assertIn(name, ctx.exception.detail)
        self.assertFalse(Transaction.objects.exists())
        self.assertEqual(self.stock(self.widget), 20)

    def test_zero_total_amount_is_accepted(self):
        txn = create_transaction(self.scope, txn_request("expense", "E-1", total="0"))
        self.assertEqual(txn.total_amount, Decimal("0"))

    def test_negative_total_amount_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_transaction(self.scope, txn_request("expense", "E-1", total="-1"))

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_transaction(self.scope, txn_request("refund", "1"))

    def test_status_invoiced_cannot_be_posted(self):
        with self.assertRaises(ValidationError):
            create_transaction(self.scope, txn_request("estimate", "1", status="Invoiced"))

    def test_malformed_line_is_rejected(self):
        with self.assertRaises(ValidationError):
            create_transaction(
                self.scope, txn_request("sale", "1", [line(None, 1, "10")])
            )
        self.assertFalse(Transaction.objects.exists())

    def test_quantity_must_be_positive_whole_number(self):
        for quantity in (0, -3):
            with self.assertRaises(ValidationError):
                create_transaction(
                    self.scope, txn_request("sale", "1", [line(self.widget, quantity)])
                )
        self.assertEqual(self.stock(self.widget), 20)

    def test_unknown_item_id_rolls_back_items_created_earlier(self):
        with self.assertRaises(NotFoundError):
            create_transaction(
                self.scope,
                txn_request("purchase", "P-1", [line(name="Brand New", quantity=1),
                                                line(999999, 1)]),
            )

        self.assertFalse(Item.objects.filter(name="Brand New").exists())
        self.assertFalse(Transaction.objects.exists())

    def test_item_of_another_company_is_not_found(self):
        other = make_company("other", state_code="27")
        foreign = make_item(other, "Widget", stock=7)

        with self.assertRaises(NotFoundError):
            create_transaction(self.scope, txn_request("sale", "1", [line(foreign, 1)]))
        self.assertEqual(self.stock(foreign), 7)

    def test_unknown_party_is_not_found(self):
        with self.assertRaises(NotFoundError):
            create_transaction(
                self.scope, txn_request("sale", "1", [line(self.widget, 1)], party=999999)
            )
        self.assertEqual(self.stock(self.widget), 20)

    def test_duplicate_number_per_type_is_a_conflict(self):
        create_transaction(self.scope, txn_request("sale", "7", [line(self.widget, 1)]))

        with self.assertRaises(ConflictError):
            create_transaction(self.scope, txn_request("sale", "7", [line(self.widget, 5)]))

        # the failed attempt did not touch stock
        self.assertEqual(self.stock(self.widget), 19)
        # same number under another type or company is fine
        create_transaction(self.scope, txn_request("purchase", "7", [line(self.widget, 1)]))
        other = make_company("other")
        create_transaction(make_scope(other), txn_request("sale", "7"))
        self.assertEqual(Transaction.objects.filter(transaction_number="7").count(), 3)

    def test_posting_writes_an_audit_entry(self):
        txn = create_transaction(self.scope, txn_request("sale", "1", [line(self.widget, 2)]))

        entry = AuditLog.objects.get(object_type="Transaction", object_id=str(txn.pk))
        self.assertEqual(entry.action, "create")
        self.assertEqual(entry.company, self.company)
        self.assertEqual(entry.changes["stock"], {str(self.widget.pk): -2})


class UpdateTransactionTests(TestCase):
    def setUp(self):
        self.company = make_company("acme", state_code="27")
        self.scope = make_scope(self.company)
        self.widget = make_item(self.company, "Widget", stock=20)
        self.gizmo = make_item(self.company, "Gizmo", stock=20)
        self.sale = create_transaction(
            self.scope, txn_request("sale", "1", [line(self.widget, 10)], total="1180")
        )

    def stock(self, item):
        return Item.objects.get(pk=item.pk).stock

    def test_header_fields_are_replaced(self):
        txn = update_transaction(
            self.scope, self.sale.pk,
            {"status": "Sent", "description": "Net 30", "amount_paid": Decimal("100")},
        )

        txn.refresh_from_db()
        self.assertEqual(txn.status, "Sent")
        self.assertEqual(txn.description, "Net 30")
        self.assertEqual(txn.amount_paid, Decimal("100"))
        # lines and stock untouched
        self.assertEqual(txn.lines.count(), 1)
        self.assertEqual(self.stock(self.widget), 10)

    def test_replacing_lines_moves_stock_to_the_new_lines(self):
        update_transaction(
            self.scope, self.sale.pk, {}, lines=[line(self.widget, 3), line(self.gizmo, 4)]
        )

        self.assertEqual(self.stock(self.widget), 17)
        self.assertEqual(self.stock(self.gizmo), 16)
        self.assertEqual(
            list(self.sale.lines.values_list("item_id", "quantity")),
            [(self.widget.pk, 3), (self.gizmo.pk, 4)],
        )

    def test_changing_party_recomputes_tax_when_lines_are_replaced(self):
        party = make_party(self.company, "Local", gstin="27AAAAA0000A1Z5")

        txn = update_transaction(
            self.scope, self.sale.pk, {"party_id": party.pk}, lines=[line(self.widget, 10)]
        )

        posted = txn.lines.get()
        self.assertEqual(txn.party_gstin, "27AAAAA0000A1Z5")
        self.assertEqual(posted.cgst, Decimal("90.00"))
        self.assertEqual(posted.igst, Decimal("0"))

    def test_changing_party_alone_recomputes_tax_of_stored_lines(self):
        local = make_party(self.company, "Local", gstin="27AAAAA0000A1Z5")
        far = make_party(self.company, "Far", gstin="09AAAAA0000A1Z5")

        txn = update_transaction(self.scope, self.sale.pk, {"party_id": local.pk})
        posted = txn.lines.get()
        self.assertEqual((posted.cgst, posted.sgst, posted.igst),
                         (Decimal("90.00"), Decimal("90.00"), Decimal("0")))

        txn = update_transaction(self.scope, self.sale.pk, {"party_id": far.pk})
        posted = txn.lines.get()
        self.assertEqual(txn.party_gstin, "09AAAAA0000A1Z5")
        self.assertEqual((posted.cgst, posted.sgst, posted.igst),
                         (Decimal("0"), Decimal("0"), Decimal("180.00")))
        self.assertEqual(posted.taxable_value, Decimal("1000.00"))
        # stock is not touched by a party change
        self.assertEqual(self.stock(self.widget), 10)

    def test_type_cannot_change(self):
        with self.assertRaises(ValidationError):
            update_transaction(self.scope, self.sale.pk, {"transaction_type": "purchase"})

    def test_status_invoiced_is_reserved_for_conversion(self):
        with self.assertRaises(ValidationError):
            update_transaction(self.scope, self.sale.pk, {"status": "Invoiced"})

    def test_number_taken_by_another_sale_is_a_conflict(self):
        create_transaction(self.scope, txn_request("sale", "2"))

        with self.assertRaises(ConflictError):
            update_transaction(self.scope, self.sale.pk, {"transaction_number": "2"})

    def test_failed_line_replacement_keeps_old_lines_and_stock(self):
        with self.assertRaises(NotFoundError):
            update_transaction(self.scope, self.sale.pk, {}, lines=[line(999999, 1)])

        self.assertEqual(self.stock(self.widget), 10)
        self.assertEqual(self.sale.lines.get().quantity, 10)

    def test_missing_transaction_is_not_found(self):
        with self.assertRaises(NotFoundError):
            update_transaction(self.scope, 999999, {"status": "Sent"})

    def test_other_company_cannot_update(self):
        other = make_scope(make_company("other"))
        with self.assertRaises(NotFoundError):
            update_transaction(other, self.sale.pk, {"status": "Sent"})
