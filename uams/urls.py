"""URL configuration for the UAMS API."""

from django.urls import include, path
from rest_framework import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views


router = routers.DefaultRouter()
router.register(r"overhead-line-inspections", views.OverheadLineInspectionViewSet, basename="overhead-line-inspection")
router.register(r"substation-inspections", views.SubstationInspectionViewSet, basename="substation-inspection")
router.register(r"load-monitoring", views.LoadMonitoringViewSet, basename="load-monitoring")
router.register(r"vit-assets", views.VITAssetViewSet, basename="vit-asset")
router.register(r"vit-inspections", views.VITInspectionViewSet, basename="vit-inspection")
router.register(r"op5-faults", views.OP5FaultViewSet, basename="op5-fault")
router.register(r"control-outages", views.ControlOutageViewSet, basename="control-outage")
router.register(
    r"equipment-failure-reports", views.EquipmentFailureReportViewSet, basename="equipment-failure-report"
)
router.register(r"substation-status", views.SubstationStatusViewSet, basename="substation-status")
router.register(r"staff-ids", views.StaffIdViewSet, basename="staff-id")
router.register(r"feeders", views.FeederViewSet, basename="feeder")
router.register(r"users", views.UserProfileViewSet, basename="user-profile")
router.register(r"regions", views.RegionViewSet)
router.register(r"districts", views.DistrictViewSet)
router.register(r"roles", views.RoleViewSet)
router.register(r"targets", views.TargetViewSet, basename="target")


urlpatterns = [
    path("api/", include(router.urls)),
    path("api/auth/login/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/faults/", views.FaultListView.as_view(), name="fault-list"),
    path(
        "api/performance/district/<int:district_id>/month/<str:month>/",
        views.district_performance,
        name="district_performance",
    ),
    path(
        "api/performance/region/<str:region_ref>/month/<str:month>/",
        views.region_performance,
        name="region_performance",
    ),
    path(
        "api/performance/region/<str:region_ref>/month/<str:month>/export/",
        views.region_performance_export,
        name="region_performance_export",
    ),
]
