import threading

import pytest
from django.db import connection
from django.test import TestCase, TransactionTestCase

from ..exceptions import ValidationError
from ..models import SequenceCounter
from ..services import current_number, next_number
from .helpers import make_company, make_scope


class NextNumberTests(TestCase):
    def setUp(self):
        self.scope = make_scope(make_company("acme"))

    def test_numbers_increase_by_one_from_one(self):
        self.assertEqual(current_number(self.scope, "sale"), 0)
        self.assertEqual([next_number(self.scope, "sale") for _ in range(5)], [1, 2, 3, 4, 5])
        self.assertEqual(current_number(self.scope, "sale"), 5)

    def test_each_type_and_company_has_its_own_counter(self):
        other = make_scope(make_company("other"))

        next_number(self.scope, "sale")
        next_number(self.scope, "sale")

        self.assertEqual(next_number(self.scope, "purchase"), 1)
        self.assertEqual(next_number(other, "sale"), 1)
        self.assertEqual(
            sorted(SequenceCounter.objects.values_list("key", "value")),
            [("purchase_acme", 1), ("sale_acme", 2), ("sale_other", 1)],
        )

    def test_current_number_does_not_create_a_counter(self):
        current_number(self.scope, "estimate")
        self.assertFalse(SequenceCounter.objects.exists())

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            next_number(self.scope, "refund")
        with self.assertRaises(ValidationError):
            current_number(self.scope, "refund")


@pytest.mark.skipif(
    connection.vendor != "postgresql",
    reason="needs row locks from a real server (SQLite serialises writers)",
)
class ConcurrentNextNumberTests(TransactionTestCase):
    def test_concurrent_callers_never_share_a_number(self):
        scope = make_scope(make_company("acme"))
        next_number(scope, "sale")  # counter row exists before the race
        issued, errors = [], []

        def worker():
            try:
                for _ in range(10):
                    issued.append(next_number(scope, "sale"))
            except Exception as exc:  # surfaced through `errors`
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(sorted(issued), list(range(2, 82)))
