"""
Unit tests for the REST client.

No network: the requests session is replaced by a MagicMock whose
request() returns canned responses.
"""

import unittest
from unittest.mock import MagicMock

import requests

from classplanner.api import SCHEDULES, ApiClient, ApiError, load_snapshot
from classplanner.model import Career, Period, ScheduleEntry


BASE = "http://backend.test/api/"


def _resp(body=None, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.content = b"" if body is None else b"{}"
    resp.json.return_value = body
    return resp


def _client(*responses) -> ApiClient:
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return ApiClient(base_url=BASE, token="secret", timeout=5, session=session)


ENTRY = {
    "horario_id": 77,
    "grupo": 1,
    "materia": 10,
    "docente": 2,
    "espacio": 3,
    "periodo": 4,
    "dia_semana": 1,
    "bloque_horario": 9,
}


class TestTransport(unittest.TestCase):
    def test_token_header_and_timeout(self) -> None:
        client = _client(_resp([]))
        client.get_all("scheduling/bloques-horarios/")
        self.assertEqual(client.session.headers["Authorization"], "Bearer secret")
        _, kwargs = client.session.request.call_args
        self.assertEqual(kwargs["timeout"], 5)

    def test_bare_list_response(self) -> None:
        client = _client(_resp([{"a": 1}, {"a": 2}]))
        self.assertEqual(len(client.get_all("x/")), 2)
        args, _ = client.session.request.call_args
        self.assertEqual(args, ("GET", BASE + "x/"))

    def test_follows_pagination(self) -> None:
        client = _client(
            _resp({"results": [{"a": 1}], "next": BASE + "x/?page=2&unidad=1"}),
            _resp({"results": [{"a": 2}], "next": None}),
        )
        out = client.get_all("x/", {"unidad": 1})
        self.assertEqual(out, [{"a": 1}, {"a": 2}])

        first, second = client.session.request.call_args_list
        self.assertEqual(first.kwargs["params"], {"unidad": 1})
        self.assertEqual(second.args, ("GET", BASE + "x/?page=2&unidad=1"))
        self.assertIsNone(second.kwargs["params"])

    def test_http_error_carries_detail(self) -> None:
        client = _client(_resp({"detail": "Docente ocupado"}, status=400))
        with self.assertRaises(ApiError) as ctx:
            client.get_all("x/")
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.detail, "Docente ocupado")
        self.assertEqual(str(ctx.exception), "Docente ocupado")

    def test_network_error(self) -> None:
        client = _client(requests.ConnectionError("refused"))
        with self.assertRaises(ApiError) as ctx:
            client.blocks()
        self.assertIsNone(ctx.exception.status)

    def test_unexpected_shape(self) -> None:
        client = _client(_resp("oops"))
        with self.assertRaises(ApiError):
            client.get_all("x/")


class TestEndpoints(unittest.TestCase):
    def test_schedules_filters(self) -> None:
        client = _client(_resp([ENTRY]))
        entries = client.schedules(4, teacher_id=2)
        self.assertEqual(entries[0].id, 77)
        _, kwargs = client.session.request.call_args
        self.assertEqual(kwargs["params"], {"periodo": 4, "docente": 2})

    def test_create_entry_posts_without_id(self) -> None:
        client = _client(_resp(ENTRY, status=201))
        entry = ScheduleEntry.from_api(ENTRY)
        entry.id = None
        created = client.create_entry(entry)
        self.assertEqual(created.id, 77)
        args, kwargs = client.session.request.call_args
        self.assertEqual(args, ("POST", BASE + SCHEDULES))
        self.assertNotIn("horario_id", kwargs["json"])

    def test_update_entry_patches(self) -> None:
        client = _client(_resp(dict(ENTRY, docente=5)))
        updated = client.update_entry(77, teacher_id=5, room_id=3, day_of_week=1, block_id=9)
        self.assertEqual(updated.teacher_id, 5)
        args, kwargs = client.session.request.call_args
        self.assertEqual(args, ("PATCH", BASE + SCHEDULES + "77/"))
        self.assertEqual(kwargs["json"]["docente"], 5)

    def test_delete_entry(self) -> None:
        client = _client(_resp(None, status=204))
        self.assertIsNone(client.delete_entry(77))
        args, _ = client.session.request.call_args
        self.assertEqual(args, ("DELETE", BASE + SCHEDULES + "77/"))

    def test_generate_schedule(self) -> None:
        client = _client(_resp({"asignados": 40, "no_asignados": 2}))
        summary = client.generate_schedule(4)
        self.assertEqual(summary["asignados"], 40)
        _, kwargs = client.session.request.call_args
        self.assertEqual(kwargs["data"], {"periodo_id": "4"})


class TestLoadSnapshot(unittest.TestCase):
    def test_assembles_period_snapshot(self) -> None:
        client = MagicMock()
        client.periods.return_value = [Period(id=3, name="2025-I"), Period(id=4, name="2025-II")]
        client.blocks.return_value = []
        client.subjects.return_value = []
        client.teachers.return_value = []
        client.rooms.return_value = []
        client.groups.return_value = []
        client.careers.return_value = [Career(id=1, code="SIS", name="Systems", total_curriculum_hours=10)]
        client.availabilities.return_value = []
        client.schedules.return_value = [ScheduleEntry.from_api(ENTRY)]

        snapshot = load_snapshot(client, 4, unit_id=1, career_id=2)

        self.assertEqual([p.id for p in snapshot.periods], [4])
        self.assertEqual(len(snapshot.schedules), 1)
        self.assertEqual(snapshot.career(1).total_curriculum_hours, 10)
        client.groups.assert_called_once_with(2, 4)
        client.rooms.assert_called_once_with(1)
        client.schedules.assert_called_once_with(4)

    def test_malformed_record_becomes_api_error(self) -> None:
        session = MagicMock()
        session.headers = {}
        bad = dict(ENTRY, docente=None)
        session.request.side_effect = [_resp([])] * 8 + [_resp([bad])]
        client = ApiClient(base_url=BASE, token=None, timeout=5, session=session)
        with self.assertRaises(ApiError):
            load_snapshot(client, 4)


if __name__ == "__main__":
    unittest.main()
