from django.urls import path
from . import views

app_name = "inventory"

urlpatterns = [
    path("units/", views.UnitListView.as_view(), name="unit-list"),
    path("units/convert/", views.UnitConvertView.as_view(), name="unit-convert"),

    path("categories/", views.CategoryListView.as_view(), name="category-list"),
    path("categories/<int:category_id>/", views.CategoryDetailView.as_view(), name="category-detail"),

    path("items/", views.ItemListView.as_view(), name="item-list"),
    path("items/stats/", views.ItemStatsView.as_view(), name="item-stats"),
    path("items/<int:item_id>/", views.ItemDetailView.as_view(), name="item-detail"),
    path("items/<int:item_id>/movements/", views.ItemMovementView.as_view(), name="item-movements"),

    path("movements/", views.MovementListView.as_view(), name="movement-list"),
    path("movements/<int:movement_id>/", views.MovementDetailView.as_view(), name="movement-detail"),

    path("alerts/", views.AlertListView.as_view(), name="alert-list"),
    path("alerts/<int:alert_id>/read/", views.AlertReadView.as_view(), name="alert-read"),
]
