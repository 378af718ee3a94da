from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter

from django.http import HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from users.models import Patient
from . import aggregation, alerts, reports, services
from .auth import DeviceIDHeaderAuth
from .conf import get_setting
from .exceptions import InvalidComment, InvalidGrid, InvalidRange, InvalidUpload, StorageError
from .ingest import FrameSample, build_frames, parse_upload_filename, read_matrix_blocks, session_start_for
from .metrics import clamp_grid
from .models import Comment, PressureMap
from .regions import ConnectedRegionAnalyzer
from .serializers import (
    RangeQuerySerializer,
    DayQuerySerializer,
    ReportQuerySerializer,
    UploadRequestSerializer,
    UploadResponseSerializer,
    IngestRequestSerializer,
    IngestResponseSerializer,
    AverageResponseSerializer,
    GraphResponseSerializer,
    SessionsResponseSerializer,
    CommentRequestSerializer,
    CommentSerializer,
    CommentsResponseSerializer,
)

import logging

access_log = logging.getLogger("django.request")

RANGE_PARAMS = [
    OpenApiParameter(name="day", type=str, required=True, description="yyyy-MM-dd"),
    OpenApiParameter(name="hours_back", type=int, required=False, description="하루 끝에서 N시간 전부터 (우선)"),
    OpenApiParameter(name="from", type=str, required=False, description="ISO8601, 잘못되면 무시"),
    OpenApiParameter(name="to", type=str, required=False, description="ISO8601, 잘못되면 무시"),
    OpenApiParameter(name="patient_id", type=int, required=False, description="임상의: 담당 환자"),
]

NO_STORE = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _error(message, code=status.HTTP_400_BAD_REQUEST):
    return Response({"ok": False, "error": message}, status=code)


def _no_store(resp):
    for k, v in NO_STORE.items():
        resp[k] = v
    return resp


def resolve_patient(request, patient_id=None):
    """patient_id 없으면 본인 환자 프로필, 있으면 요청자(임상의)의 담당 환자만."""
    user = request.user
    if patient_id is None:
        return getattr(user, "patient", None)
    clinician = getattr(user, "clinician", None)
    if clinician is None:
        return None
    return Patient.objects.filter(pk=patient_id, clinician=clinician).first()


def can_access_patient(user, patient):
    """본인 환자 프로필이거나 그 환자의 담당 임상의."""
    own = getattr(user, "patient", None)
    if own is not None and own.pk == patient.pk:
        return True
    clinician = getattr(user, "clinician", None)
    return clinician is not None and patient.clinician_id == clinician.pk


def _analyzer():
    return ConnectedRegionAnalyzer(min_area=get_setting("MIN_REGION_AREA"))


def _graph_policy():
    # 그래프: 버킷 내 최대 peak
    return aggregation.SeriesPolicy(bucket_seconds=get_setting("GRAPH_BUCKET_SECONDS"), reducer="max")


class _PatientRangeView(APIView):
    permission_classes = [IsAuthenticated]

    def _load(self, request):
        """(patient, day, range_start, range_end, frames) 또는 에러 Response."""
        q = RangeQuerySerializer(data=request.GET)
        q.is_valid(raise_exception=True)
        p = q.validated_data

        patient = resolve_patient(request, p.get("patient_id"))
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)

        tz = timezone.get_current_timezone()
        day = p["day"]
        try:
            range_start, range_end = aggregation.resolve_range(
                day,
                hours_back=p.get("hours_back"),
                from_=request.GET.get("from"),
                to=request.GET.get("to"),
                tz=tz,
            )
        except InvalidRange as e:
            return _error(str(e))
        frames = services.frames_for_day(patient, day)
        access_log.info(
            f"[range] patient={patient.pk} day={day} range=({range_start.isoformat()}, {range_end.isoformat()}) frames_day={len(frames)}"
        )
        return patient, day, range_start, range_end, frames


@extend_schema(tags=["pressure"], summary="기간 평균 압력 맵 (32x32, 데이터 없으면 [])",
               parameters=RANGE_PARAMS, responses=AverageResponseSerializer)
class AverageMapView(_PatientRangeView):
    def get(self, request):
        loaded = self._load(request)
        if isinstance(loaded, Response):
            return loaded
        _, day, range_start, range_end, frames = loaded

        window = aggregation.aggregate(frames, range_start, range_end, _graph_policy())
        return _no_store(Response({
            "ok": True,
            "day": day.isoformat(),
            "range_start": window.range_start.isoformat(),
            "range_end": window.range_end.isoformat(),
            "average_map": window.average_grid,
        }))


@extend_schema(tags=["pressure"], summary="그래프용 peak pressure 시계열 (1분 버킷, 버킷 내 최대)",
               parameters=RANGE_PARAMS, responses=GraphResponseSerializer)
class GraphDataView(_PatientRangeView):
    def get(self, request):
        loaded = self._load(request)
        if isinstance(loaded, Response):
            return loaded
        _, day, range_start, range_end, frames = loaded

        window = aggregation.aggregate(frames, range_start, range_end, _graph_policy())
        return _no_store(Response({
            "ok": True,
            "day": day.isoformat(),
            "range_start": window.range_start.isoformat(),
            "range_end": window.range_end.isoformat(),
            "points": [pt.as_dict() for pt in window.series_points],
        }))


@extend_schema(tags=["pressure"], summary="데이터가 있는 날짜 목록 (최신순)",
               parameters=[OpenApiParameter(name="patient_id", type=int, required=False)])
class DaysView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            patient_id = int(request.GET["patient_id"]) if request.GET.get("patient_id") else None
        except ValueError:
            return _error("patient_id must be an integer")
        patient = resolve_patient(request, patient_id)
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)
        return Response({"ok": True, "days": services.patient_days(patient)})


@extend_schema(tags=["pressure"], summary="해당 날짜의 세션 목록",
               parameters=[OpenApiParameter(name="day", type=str, required=True),
                           OpenApiParameter(name="patient_id", type=int, required=False)],
               responses=SessionsResponseSerializer)
class SessionsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        q = DayQuerySerializer(data=request.GET)
        q.is_valid(raise_exception=True)
        p = q.validated_data
        patient = resolve_patient(request, p.get("patient_id"))
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)

        items = []
        for s in services.sessions_for_day(patient, p["day"]):
            items.append({
                "id": s.pk,
                "day": s.day.isoformat(),
                "start": timezone.localtime(s.extent_start).isoformat() if s.extent_start else None,
                "end": timezone.localtime(s.extent_end).isoformat() if s.extent_end else None,
            })
        return Response({"ok": True, "items": items})


class SessionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["pressure"], summary="본인 세션 삭제 (프레임 포함)", request=None)
    def delete(self, request, pk):
        patient = resolve_patient(request)
        if patient is None:
            return _error("Patient not found.", status.HTTP_404_NOT_FOUND)
        frame_count = services.delete_session(patient, pk)
        if frame_count is None:
            return _error("Pressure map was not found.", status.HTTP_404_NOT_FOUND)
        access_log.info(f"[delete] patient={patient.pk} map={pk} frames={frame_count}")
        return Response({"ok": True, "id": pk, "frames": frame_count})


class UploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        tags=["collect"],
        summary="CSV 업로드: 겹치는 기존 세션은 삭제 후 새 세션 저장",
        request=UploadRequestSerializer,
        responses=UploadResponseSerializer,
    )
    def post(self, request):
        ser = UploadRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        p = ser.validated_data

        patient = resolve_patient(request)
        if patient is None:
            return _error("You must be a patient to upload files.", status.HTTP_403_FORBIDDEN)

        upload = p["file"]
        tz = timezone.get_current_timezone()
        try:
            day = parse_upload_filename(upload.name)
            start = session_start_for(
                day,
                start_time=p.get("start_time"),
                now=timezone.localtime() if p.get("use_current_time") else None,
                tz=tz,
            )
            samples = build_frames(
                read_matrix_blocks(upload),
                start,
                fps=get_setting("FRAMES_PER_SECOND"),
                contact_threshold=get_setting("CONTACT_THRESHOLD"),
                analyzer=_analyzer(),
            )
        except InvalidUpload as e:
            return _error(str(e))
        except UnicodeDecodeError:
            return _error("file must be UTF-8 text")

        if not samples:
            return _error("No frames found.")

        access_log.info(f"[upload] patient={patient.pk} file={upload.name} day={day} frames={len(samples)}")

        try:
            pm = services.store_session(patient, day, samples)
        except StorageError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            {
                "ok": True,
                "id": pm.pk,
                "day": day.isoformat(),
                "frames": len(samples),
                "start": samples[0].timestamp.isoformat(),
                "end": samples[-1].timestamp.isoformat(),
            },
            status=status.HTTP_201_CREATED,
        )


class IngestView(APIView):
    authentication_classes = [DeviceIDHeaderAuth]
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["collect"],
        summary="센서 매트가 프레임 1장 전송, 지표/경보 단계 반환",
        request=IngestRequestSerializer,
        responses=IngestResponseSerializer,
    )
    def post(self, request):
        ser = IngestRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        p = ser.validated_data

        device = request.auth
        patient = device.patient

        # timestamp: ISO8601 → aware(local)
        dt = parse_datetime(str(p["timestamp"]))
        if not dt:
            return _error("timestamp must be valid ISO8601 string (e.g. 2025-10-13T12:34:56.000Z)")
        if timezone.is_naive(dt):
            dt = timezone.make_aware(dt, timezone=timezone.get_current_timezone())
        ts_local = timezone.localtime(dt)

        try:
            sample = FrameSample.from_grid(
                ts_local,
                clamp_grid(p["grid"]),
                contact_threshold=get_setting("CONTACT_THRESHOLD"),
                analyzer=_analyzer(),
            )
        except InvalidGrid as e:
            return _error(str(e))

        try:
            frame = services.append_live_frame(patient, ts_local.date(), sample)
        except StorageError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        levels = alerts.evaluate(sample.metrics, get_setting("ALERTS"))
        access_log.info(
            f"[ingest] device_id={device.device_id} frame={frame.pk} peak={sample.peak_pressure} alert={levels.worst.name.lower()}"
        )
        return Response({
            "ok": True,
            "id": frame.pk,
            "timestamp": ts_local.isoformat(),
            "metrics": sample.metrics.as_dict(),
            "alerts": levels.as_dict(),
        })


class LatestAlertView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["pressure"], summary="가장 최근 프레임의 경보 단계",
                   parameters=[OpenApiParameter(name="patient_id", type=int, required=False)])
    def get(self, request):
        try:
            patient_id = int(request.GET["patient_id"]) if request.GET.get("patient_id") else None
        except ValueError:
            return _error("patient_id must be an integer")
        patient = resolve_patient(request, patient_id)
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)

        frame = services.latest_frame(patient)
        if frame is None:
            return _no_store(Response({"ok": True, "frame": None, "alerts": None}))

        levels = alerts.evaluate(frame, get_setting("ALERTS"))
        return _no_store(Response({
            "ok": True,
            "frame": {
                "id": frame.pk,
                "timestamp": timezone.localtime(frame.timestamp).isoformat(),
                "peak_pressure": frame.peak_pressure,
                "contact_area_percentage": frame.contact_area_percentage,
                "min_value": frame.min_value,
            },
            "alerts": levels.as_dict(),
        }))


class CommentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["pressure"], summary="해당 날짜 세션들의 댓글 (최신순)",
                   parameters=[OpenApiParameter(name="day", type=str, required=True),
                               OpenApiParameter(name="patient_id", type=int, required=False)],
                   responses=CommentsResponseSerializer)
    def get(self, request):
        q = DayQuerySerializer(data=request.GET)
        q.is_valid(raise_exception=True)
        p = q.validated_data
        patient = resolve_patient(request, p.get("patient_id"))
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)

        comments = services.comments_for_day(patient, p["day"])
        return Response({"ok": True, "items": CommentSerializer(comments, many=True).data})

    @extend_schema(tags=["pressure"], summary="세션에 댓글/답글 작성",
                   request=CommentRequestSerializer, responses=CommentSerializer)
    def post(self, request):
        ser = CommentRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        p = ser.validated_data

        pm = PressureMap.objects.select_related("patient").filter(pk=p["pressure_map"]).first()
        if pm is None or not can_access_patient(request.user, pm.patient):
            return _error("Pressure map was not found.", status.HTTP_404_NOT_FOUND)

        parent = None
        if p.get("parent") is not None:
            parent = Comment.objects.filter(pk=p["parent"]).first()
            if parent is None:
                return _error("Parent comment was not found.")

        try:
            comment = services.add_comment(request.user, pm, p["text"], parent=parent)
        except InvalidComment as e:
            return _error(str(e))
        except StorageError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        access_log.info(f"[comment] user={request.user.pk} map={pm.pk} comment={comment.pk}")
        return Response({"ok": True, **CommentSerializer(comment).data}, status=status.HTTP_201_CREATED)


class ReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["report"],
        summary="하루 리포트 (txt) / 원본 프레임 CSV 다운로드",
        parameters=[
            OpenApiParameter(name="day", type=str, required=True),
            OpenApiParameter(name="format", type=str, required=False, enum=["txt", "csv"]),
            OpenApiParameter(name="patient_id", type=int, required=False),
        ],
        responses={(200, "text/plain"): str},
    )
    def get(self, request):
        q = ReportQuerySerializer(data=request.GET)
        q.is_valid(raise_exception=True)
        p = q.validated_data

        patient = resolve_patient(request, p.get("patient_id"))
        if patient is None:
            return _error("This patient was either not found or not assigned to you.", status.HTTP_404_NOT_FOUND)

        day = p["day"]
        sessions = services.sessions_for_day(patient, day)
        if not sessions:
            return _error("No data found for this day.", status.HTTP_404_NOT_FOUND)
        frames = services.frames_for_day(patient, day)

        if p["format"] == "csv":
            body = reports.export_csv(frames)
            filename = f"{patient.pk}_{day:%Y%m%d}.csv"
            content_type = "text/csv"
        else:
            tz = timezone.get_current_timezone()
            report = reports.build_day_report(
                patient.pk,
                [s.pk for s in sessions],
                day,
                frames,
                top_n=get_setting("REPORT_TOP_REGIONS"),
                trend_policy=aggregation.SeriesPolicy(
                    bucket_seconds=get_setting("REPORT_BUCKET_SECONDS"), reducer="mean"
                ),
                tz=tz,
            )
            body = reports.render_text(report, generated_at=timezone.localtime())
            filename = f"Report_{day:%Y%m%d}.txt"
            content_type = "text/plain"

        access_log.info(f"[report] patient={patient.pk} day={day} format={p['format']} frames={len(frames)}")
        resp = HttpResponse(body, content_type=f"{content_type}; charset=utf-8")
        resp["Content-Disposition"] = f'attachment; filename="{filename}"'
        return resp
