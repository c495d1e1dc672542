"""
API v1 URL configuration.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from api.v1.views import StoreViewSet
from campaigns.campaign_views import (
    CampaignViewSet,
    EmployeeSalesReportView,
    ParticipantViewSet,
    SalesPeriodViewSet,
)

router = DefaultRouter()
router.register(r"stores", StoreViewSet, basename="store")
router.register(r"campaigns", CampaignViewSet, basename="campaign")
router.register(r"campaign-participants", ParticipantViewSet, basename="campaign-participant")
router.register(r"sales-periods", SalesPeriodViewSet, basename="sales-period")

urlpatterns = [
    path(
        "reporting/employee-sales/",
        EmployeeSalesReportView.as_view(),
        name="reporting-employee-sales",
    ),
    path("", include(router.urls)),
]
