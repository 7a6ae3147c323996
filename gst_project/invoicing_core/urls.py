from django.urls import path

from . import views

urlpatterns = [
    path("transactions/", views.transaction_list, name="transaction-list"),
    # before <int:pk>/ so "next-number" is never read as an id
    path(
        "transactions/next-number/<str:transaction_type>/",
        views.transaction_next_number,
        name="transaction-next-number",
    ),
    path("transactions/<int:pk>/", views.transaction_detail, name="transaction-detail"),
    path(
        "transactions/<int:pk>/convert/",
        views.transaction_convert,
        name="transaction-convert",
    ),
    path("items/", views.item_list, name="item-list"),
    path("parties/", views.party_list, name="party-list"),
]
