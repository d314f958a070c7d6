"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import AccessoryHistoryView, AccessoryListView, StatusView

urlpatterns = [
    path("accessories", AccessoryListView.as_view(), name="accessories"),
    path("accessories/<int:index>/history", AccessoryHistoryView.as_view(), name="accessory-history"),
    path("status", StatusView.as_view(), name="status"),
]
