import datetime
from zoneinfo import ZoneInfo

from django.test import TestCase

from ..exceptions import NotFoundError, ValidationError
from ..services import create_transaction, get_transaction, list_transactions
from .helpers import line, make_company, make_item, make_party, make_scope, txn_request

IST = ZoneInfo("Asia/Kolkata")


def at(day, hour=12, minute=0):
    return datetime.datetime(2025, 3, day, hour, minute, tzinfo=IST)


class ListTransactionsTests(TestCase):
    def setUp(self):
        self.company = make_company("acme")
        self.scope = make_scope(self.company)
        self.widget = make_item(self.company, "Widget", stock=50)
        self.alice = make_party(self.company, "Alice")
        self.bob = make_party(self.company, "Bob", party_type="supplier")

        def post(transaction_type, number, when, party):
            return create_transaction(
                self.scope,
                txn_request(transaction_type, number, [line(self.widget, 1)],
                            party=party, transaction_date=when),
            )

        self.s1 = post("sale", "1", at(1), self.alice)
        self.s2 = post("sale", "2", at(10, 23, 59), self.alice)
        self.p1 = post("purchase", "1", at(10, 9), self.bob)
        self.e1 = post("estimate", "1", at(20), self.bob)

        # another company's data never shows up
        other = make_company("other")
        create_transaction(make_scope(other), txn_request("sale", "1", transaction_date=at(10)))

    def ids(self, **filters):
        return [t.pk for t in list_transactions(self.scope, **filters)]

    def test_newest_first(self):
        self.assertEqual(self.ids(), [self.e1.pk, self.s2.pk, self.p1.pk, self.s1.pk])

    def test_ties_on_date_go_by_creation_time(self):
        later = create_transaction(
            self.scope, txn_request("saleOrder", "1", transaction_date=at(20))
        )
        self.assertEqual(self.ids()[:2], [later.pk, self.e1.pk])

    def test_filter_by_single_type(self):
        self.assertEqual(self.ids(types="sale"), [self.s2.pk, self.s1.pk])

    def test_filter_by_comma_separated_types(self):
        self.assertEqual(
            self.ids(types="purchase,estimate"), [self.e1.pk, self.p1.pk]
        )
        self.assertEqual(
            self.ids(types=["purchase", "estimate"]), [self.e1.pk, self.p1.pk]
        )

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            list_transactions(self.scope, types="sale,refund")

    def test_filter_by_party(self):
        self.assertEqual(self.ids(party_id=self.bob.pk), [self.e1.pk, self.p1.pk])

    def test_end_date_includes_the_whole_day(self):
        self.assertEqual(
            self.ids(end_date=datetime.date(2025, 3, 10)),
            [self.s2.pk, self.p1.pk, self.s1.pk],
        )

    def test_start_date_is_inclusive(self):
        self.assertEqual(
            self.ids(start_date=datetime.date(2025, 3, 10)),
            [self.e1.pk, self.s2.pk, self.p1.pk],
        )

    def test_filters_combine(self):
        self.assertEqual(
            self.ids(types="sale", party_id=self.alice.pk,
                     start_date=datetime.date(2025, 3, 2),
                     end_date=datetime.date(2025, 3, 10)),
            [self.s2.pk],
        )

    def test_party_and_items_are_joined(self):
        txn = list_transactions(self.scope, types="sale")[0]

        with self.assertNumQueries(0):
            self.assertEqual(txn.party.name, "Alice")
            self.assertEqual([l.item.name for l in txn.lines.all()], ["Widget"])


class GetTransactionTests(TestCase):
    def setUp(self):
        self.company = make_company("acme")
        self.scope = make_scope(self.company)
        self.sale = create_transaction(self.scope, txn_request("sale", "1"))

    def test_fetch_one(self):
        self.assertEqual(get_transaction(self.scope, self.sale.pk), self.sale)

    def test_missing_or_foreign_is_not_found(self):
        with self.assertRaises(NotFoundError):
            get_transaction(self.scope, 999999)
        with self.assertRaises(NotFoundError):
            get_transaction(make_scope(make_company("other")), self.sale.pk)
