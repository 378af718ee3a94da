# config/urls.py
from django.contrib import admin
from django.urls import path

from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)

from pressuremap.views_api import (
    UploadView,
    IngestView,
    DaysView,
    AverageMapView,
    GraphDataView,
    SessionsView,
    SessionDetailView,
    ReportView,
    LatestAlertView,
    CommentsView,
)

urlpatterns = [
    path("admin/", admin.site.urls),

    # ---- 수집 ----
    path("api/upload/", UploadView.as_view(), name="api-upload"),
    path("api/ingest/", IngestView.as_view(), name="api-ingest"),

    # ---- 조회 ----
    path("api/days/",                   DaysView.as_view(),          name="api-days"),
    path("api/average/",                AverageMapView.as_view(),    name="api-average"),
    path("api/graph/",                  GraphDataView.as_view(),     name="api-graph"),
    path("api/sessions/",               SessionsView.as_view(),      name="api-sessions"),
    path("api/sessions/<int:pk>/",      SessionDetailView.as_view(), name="api-session-detail"),
    path("api/alerts/latest/",          LatestAlertView.as_view(),   name="api-alerts-latest"),
    path("api/comments/",               CommentsView.as_view(),      name="api-comments"),
    path("api/report/",                 ReportView.as_view(),        name="api-report"),

    # ---- OpenAPI/Swagger (sidecar 사용) ----
    path("api/schema/",  SpectacularAPIView.as_view(), name="schema"),
    path("api/swagger/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/",   SpectacularRedocView.as_view(url_name="schema"),   name="redoc"),
]
