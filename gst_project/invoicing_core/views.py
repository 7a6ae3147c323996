from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import SAFE_METHODS
from rest_framework.response import Response

from . import services
from .serializers import (
    ItemSerializer,
    PartySerializer,
    TransactionInputSerializer,
    TransactionQuerySerializer,
    TransactionSerializer,
)


def get_scope(request):
    # CurrentCompanyMiddleware attaches the scope for members of a company
    scope = getattr(request, "scope", None)
    if scope is None:
        raise PermissionDenied("No active company for this user.")
    if request.method not in SAFE_METHODS and not scope.can_write:
        raise PermissionDenied("Your role in this company is read-only.")
    return scope


def _transaction_response(scope, txn, code=status.HTTP_200_OK):
    # Re-read with party and items joined for the projection
    txn = services.get_transaction(scope, txn.pk)
    return Response(TransactionSerializer(txn).data, status=code)


# ---------- Transactions ----------
@api_view(["GET", "POST"])
def transaction_list(request):
    scope = get_scope(request)

    if request.method == "POST":
        serializer = TransactionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = services.create_transaction(scope, serializer.to_request())
        return _transaction_response(scope, txn, status.HTTP_201_CREATED)

    query = TransactionQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    filters = query.validated_data
    txns = services.list_transactions(
        scope,
        types=filters.get("type"),
        party_id=filters.get("party_id"),
        start_date=filters.get("start_date"),
        end_date=filters.get("end_date"),
    )
    return Response(TransactionSerializer(txns, many=True).data)


@api_view(["GET", "PUT", "DELETE"])
def transaction_detail(request, pk):
    scope = get_scope(request)

    if request.method == "PUT":
        serializer = TransactionInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes, lines = serializer.to_changes()
        txn = services.update_transaction(scope, pk, changes, lines=lines)
        return _transaction_response(scope, txn)

    if request.method == "DELETE":
        services.delete_transaction(scope, pk)
        return Response({"message": "Transaction deleted and stock reversed.", "id": pk})

    txn = services.get_transaction(scope, pk)
    return Response(TransactionSerializer(txn).data)


@api_view(["POST"])
def transaction_convert(request, pk):
    scope = get_scope(request)
    sale = services.convert_estimate(scope, pk)
    return _transaction_response(scope, sale, status.HTTP_201_CREATED)


@api_view(["GET"])
def transaction_next_number(request, transaction_type):
    # Reserves the number: a number fetched but never posted is a gap
    scope = get_scope(request)
    if not scope.can_write:
        raise PermissionDenied("Your role in this company is read-only.")
    return Response({"nextNumber": services.next_number(scope, transaction_type)})


# ---------- Items ----------
@api_view(["GET", "POST"])
def item_list(request):
    scope = get_scope(request)

    if request.method == "POST":
        serializer = ItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = services.create_item(scope, **serializer.validated_data)
        return Response(ItemSerializer(item).data, status=status.HTTP_201_CREATED)

    return Response(ItemSerializer(services.list_items(scope), many=True).data)


# ---------- Parties ----------
@api_view(["GET", "POST"])
def party_list(request):
    scope = get_scope(request)

    if request.method == "POST":
        serializer = PartySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        party = services.create_party(scope, **serializer.validated_data)
        return Response(PartySerializer(party).data, status=status.HTTP_201_CREATED)

    parties = services.list_parties(scope, party_type=request.query_params.get("type"))
    return Response(PartySerializer(parties, many=True).data)
