from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.backends.db import SessionStore
from django.http import HttpResponse
from django.test import RequestFactory, TestCase

from ..middleware import CurrentCompanyMiddleware
from ..models import EntityMembership
from .helpers import make_company


class CurrentCompanyMiddlewareTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = CurrentCompanyMiddleware(lambda request: HttpResponse())
        self.acme = make_company("acme")
        self.beta = make_company("beta")
        self.outsider = make_company("outsider")
        self.user = get_user_model().objects.create_user(username="clerk", password="pw")
        EntityMembership.objects.create(user=self.user, company=self.acme, is_default=True)
        EntityMembership.objects.create(user=self.user, company=self.beta)

    def request(self, user, active_company=None):
        request = self.factory.get("/api/transactions/")
        request.user = user
        request.session = SessionStore()
        if active_company is not None:
            request.session["active_company_id"] = active_company.pk
        self.middleware.process_request(request)
        return request

    def test_anonymous_has_no_scope(self):
        request = self.request(AnonymousUser())

        self.assertIsNone(request.company)
        self.assertIsNone(request.scope)

    def test_default_membership_is_used(self):
        request = self.request(self.user)

        self.assertEqual(request.company, self.acme)
        self.assertEqual(request.scope.company_code, "acme")
        self.assertEqual(request.scope.user, self.user)

    def test_session_can_switch_to_another_membership(self):
        request = self.request(self.user, active_company=self.beta)

        self.assertEqual(request.scope.company, self.beta)

    def test_session_cannot_jump_into_a_foreign_company(self):
        request = self.request(self.user, active_company=self.outsider)

        self.assertIsNone(request.company)
        self.assertIsNone(request.scope)

    def test_inactive_membership_gives_no_scope(self):
        EntityMembership.objects.filter(company=self.acme).update(is_active=False)

        request = self.request(self.user)

        self.assertIsNone(request.scope)

    def test_scope_state_code_falls_back_to_settings(self):
        self.acme.state_code = ""
        self.acme.save()

        with self.settings(COMPANY_STATE_CODE="29"):
            self.assertEqual(self.request(self.user).scope.state_code, "29")

    def test_scope_carries_the_membership_role(self):
        EntityMembership.objects.filter(company=self.acme).update(role="viewer")

        scope = self.request(self.user).scope

        self.assertEqual(scope.role, "viewer")
        self.assertFalse(scope.can_write)

    def test_scope_state_code_comes_from_company_gstin(self):
        self.acme.state_code = ""
        self.acme.gstin = "29ABCDE1234F1Z5"
        self.acme.save()

        with self.settings(COMPANY_STATE_CODE="27"):
            self.assertEqual(self.request(self.user).scope.state_code, "29")
