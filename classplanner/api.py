"""
REST client for the timetable backend.

The backend owns every record; this module only reads collections into
model objects and forwards create/update/delete requests for schedule
entries. List endpoints may answer with a bare JSON list or with a
paginated object {"results": [...], "next": <url or null>}; both are accepted
and pages are followed until "next" is empty.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urljoin

import requests

from classplanner.config import get_settings
from classplanner.model import (
    Career,
    Group,
    Period,
    Room,
    ScheduleEntry,
    Snapshot,
    Subject,
    Teacher,
    TeacherAvailability,
    TimeBlock,
)


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

PERIODS = "academic-setup/periodos-academicos/"
UNITS = "academic-setup/unidades-academicas/"
CAREERS = "academic-setup/carreras/"
SUBJECTS = "academic-setup/materias/"
ROOMS = "academic-setup/espacios-fisicos/"
TEACHERS = "users/docentes/"
BLOCKS = "scheduling/bloques-horarios/"
GROUPS = "scheduling/grupos/"
SCHEDULES = "scheduling/horarios-asignados/"
AVAILABILITIES = "scheduling/disponibilidad-docentes/"
GENERATE = "scheduling/acciones-horario/generar-horario-automatico/"

# guard against a backend that keeps returning the same "next" link
MAX_PAGES = 200


class ApiError(Exception):
    """
    A request to the backend failed (network error or HTTP error status).
    """

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


def _params(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def _error_detail(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return None


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = base_url or settings.api_url
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout = timeout if timeout is not None else settings.timeout
        self.session = session or requests.Session()
        token = token if token is not None else settings.api_token
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = path if path.startswith(("http://", "https://")) else urljoin(self.base_url, path)
        logger.debug("%s %s %s", method, url, kwargs.get("params") or "")
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.warning("%s %s -> HTTP %s %s", method, url, resp.status_code, detail or "")
            raise ApiError(
                detail or f"{method} {url} failed with HTTP {resp.status_code}",
                status=resp.status_code,
                detail=detail,
            )

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(f"{method} {url} returned invalid JSON", status=resp.status_code) from exc

    def get_all(self, path: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """
        GET a list endpoint and collect every page.
        """
        out: list[dict[str, Any]] = []
        next_url: Optional[str] = path
        next_params = params
        pages = 0
        while next_url:
            data = self._request("GET", next_url, params=next_params)
            pages += 1
            if isinstance(data, list):
                out.extend(data)
                break
            if not isinstance(data, dict):
                raise ApiError(f"Unexpected response shape from {next_url}")
            out.extend(data.get("results") or [])
            next_url = data.get("next")
            # the "next" link already carries the query string
            next_params = None
            if pages >= MAX_PAGES:
                logger.warning("Stopped after %d pages of %s", pages, path)
                break
        logger.debug("Loaded %d records from %s", len(out), path)
        return out

    # -----------------------------------------------------------------------
    # Reference data
    # -----------------------------------------------------------------------

    def periods(self, active_only: bool = True) -> list[Period]:
        params = {"activo": "true"} if active_only else None
        return [Period.from_api(x) for x in self.get_all(PERIODS, params)]

    def units(self) -> list[dict[str, Any]]:
        return self.get_all(UNITS)

    def careers(self, unit_id: Optional[int] = None) -> list[Career]:
        return [Career.from_api(x) for x in self.get_all(CAREERS, _params(unidad=unit_id))]

    def blocks(self) -> list[TimeBlock]:
        return [TimeBlock.from_api(x) for x in self.get_all(BLOCKS)]

    def subjects(self, career_id: Optional[int] = None) -> list[Subject]:
        return [Subject.from_api(x) for x in self.get_all(SUBJECTS, _params(carrera=career_id))]

    def rooms(self, unit_id: Optional[int] = None) -> list[Room]:
        return [Room.from_api(x) for x in self.get_all(ROOMS, _params(unidad=unit_id))]

    def teachers(self, unit_id: Optional[int] = None) -> list[Teacher]:
        return [Teacher.from_api(x) for x in self.get_all(TEACHERS, _params(unidad_principal=unit_id))]

    def groups(self, career_id: Optional[int] = None, period_id: Optional[int] = None) -> list[Group]:
        return [Group.from_api(x) for x in self.get_all(GROUPS, _params(carrera=career_id, periodo=period_id))]

    # -----------------------------------------------------------------------
    # Period-scoped data
    # -----------------------------------------------------------------------

    def schedules(
        self,
        period_id: int,
        group_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        room_id: Optional[int] = None,
    ) -> list[ScheduleEntry]:
        params = _params(periodo=period_id, grupo=group_id, docente=teacher_id, espacio=room_id)
        return [ScheduleEntry.from_api(x) for x in self.get_all(SCHEDULES, params)]

    def availabilities(self, period_id: int, teacher_id: Optional[int] = None) -> list[TeacherAvailability]:
        params = _params(periodo=period_id, docente=teacher_id)
        return [TeacherAvailability.from_api(x) for x in self.get_all(AVAILABILITIES, params)]

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def create_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        payload = entry.to_dict()
        payload.pop("horario_id", None)
        data = self._request("POST", SCHEDULES, json=payload)
        logger.info("Created schedule entry %s", data.get("horario_id") if isinstance(data, dict) else "?")
        return ScheduleEntry.from_api(data)

    def update_entry(
        self,
        entry_id: int,
        teacher_id: int,
        room_id: int,
        day_of_week: int,
        block_id: int,
    ) -> ScheduleEntry:
        payload = {
            "docente": teacher_id,
            "espacio": room_id,
            "bloque_horario": block_id,
            "dia_semana": day_of_week,
        }
        data = self._request("PATCH", f"{SCHEDULES}{entry_id}/", json=payload)
        logger.info("Updated schedule entry %s", entry_id)
        return ScheduleEntry.from_api(data)

    def delete_entry(self, entry_id: int) -> None:
        self._request("DELETE", f"{SCHEDULES}{entry_id}/")
        logger.info("Deleted schedule entry %s", entry_id)

    def generate_schedule(self, period_id: int) -> dict[str, Any]:
        """
        Ask the backend to build the period's timetable automatically.
        The optimisation runs server-side; the summary it returns is passed through.
        """
        data = self._request("POST", GENERATE, data={"periodo_id": str(period_id)})
        return data if isinstance(data, dict) else {}


def load_snapshot(
    client: ApiClient,
    period_id: int,
    unit_id: Optional[int] = None,
    career_id: Optional[int] = None,
) -> Snapshot:
    """
    Fetch everything the resolver needs for one period.

    Schedules and availabilities always cover the whole period so conflicts
    with other units' groups are visible; reference data can be narrowed to
    one academic unit and one career.
    """
    try:
        periods = client.periods(active_only=False)
        snapshot = Snapshot(
            blocks=client.blocks(),
            periods=[p for p in periods if p.id == period_id],
            subjects=client.subjects(career_id),
            teachers=client.teachers(unit_id),
            rooms=client.rooms(unit_id),
            groups=client.groups(career_id, period_id),
            careers=client.careers(unit_id),
            availabilities=client.availabilities(period_id),
            schedules=client.schedules(period_id),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ApiError(f"Malformed record from the API: {exc!r}") from exc
    logger.info(
        "Loaded period %s: %d entries, %d availabilities, %d teachers, %d rooms",
        period_id,
        len(snapshot.schedules),
        len(snapshot.availabilities),
        len(snapshot.teachers),
        len(snapshot.rooms),
    )
    return snapshot
