"""
Central data model definitions used across the project.

This module defines the canonical structure of the timetable records so that:
- the REST client, the snapshot cache and the resolver share the same field names
- wire payloads (Spanish backend field names) are translated in exactly one place
- set-valued fields are never None (an empty set means "no requirement")

All records are read-only views of data owned by the remote API.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional


DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}


def parse_hour(hhmm: str) -> int:
    """
    Return the hour of an 'HH:MM' or 'HH:MM:SS' string.
    Raises ValueError for invalid formats.
    """
    parts = str(hhmm).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _specialties(items: Any) -> dict[int, str]:
    # especialidades_detalle may be missing or null on older records
    out: dict[int, str] = {}
    for item in items or []:
        if isinstance(item, dict):
            out[int(item["especialidad_id"])] = str(item.get("nombre_especialidad") or "")
        else:
            out[int(item)] = ""
    return out


def _specialties_to_api(names: dict[int, str]) -> list[dict[str, Any]]:
    return [{"especialidad_id": sid, "nombre_especialidad": name} for sid, name in sorted(names.items())]


class Shift(enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["Shift"]:
        """
        Map a shift label to a Shift.

        Accepts the English names and the backend's labels ("Mañana", "Tarde",
        "Noche"), matched case-insensitively as substrings. Unknown or empty
        labels return None, meaning the group has no shift constraint.
        """
        text = (label or "").strip().lower()
        if not text:
            return None
        if "morning" in text or "mañana" in text or "manana" in text:
            return cls.MORNING
        if "afternoon" in text or "tarde" in text:
            return cls.AFTERNOON
        if "evening" in text or "night" in text or "noche" in text:
            return cls.EVENING
        return None


@dataclass
class TimeBlock:
    """
    A named time interval on one weekday (1=Monday ... 6=Saturday).
    """

    id: int
    day_of_week: int
    start_time: str
    end_time: str
    order_index: int = 0
    label: str = ""

    def __post_init__(self) -> None:
        # fail at load time rather than inside the validator
        parse_hour(self.start_time)
        parse_hour(self.end_time)

    @property
    def start_hour(self) -> int:
        return parse_hour(self.start_time)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TimeBlock":
        return cls(
            id=int(data["bloque_def_id"]),
            day_of_week=int(data["dia_semana"]),
            start_time=str(data["hora_inicio"]),
            end_time=str(data["hora_fin"]),
            order_index=int(data.get("orden") or 0),
            label=str(data.get("nombre_bloque") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "bloque_def_id": self.id,
            "dia_semana": self.day_of_week,
            "hora_inicio": self.start_time,
            "hora_fin": self.end_time,
            "orden": self.order_index,
            "nombre_bloque": self.label,
        }


@dataclass
class Period:
    id: int
    name: str
    start_date: str = ""
    end_date: str = ""
    active: bool = True

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Period":
        return cls(
            id=int(data["periodo_id"]),
            name=str(data.get("nombre_periodo") or ""),
            start_date=str(data.get("fecha_inicio") or ""),
            end_date=str(data.get("fecha_fin") or ""),
            active=bool(data.get("activo", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "periodo_id": self.id,
            "nombre_periodo": self.name,
            "fecha_inicio": self.start_date,
            "fecha_fin": self.end_date,
            "activo": self.active,
        }


@dataclass
class Subject:
    """
    A subject (materia) with its room-type and specialty requirements.

    required_room_type_id None  -> any room type is acceptable.
    required_specialty_ids empty -> any available teacher is acceptable.
    """

    id: int
    code: str
    name: str
    theory_hours: int = 0
    practice_hours: int = 0
    lab_hours: int = 0
    required_room_type_id: Optional[int] = None
    required_room_type_name: Optional[str] = None
    specialty_names: dict[int, str] = field(default_factory=dict)

    @property
    def required_specialty_ids(self) -> frozenset[int]:
        return frozenset(self.specialty_names)

    @property
    def weekly_hours(self) -> int:
        return self.theory_hours + self.practice_hours

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Subject":
        return cls(
            id=int(data["materia_id"]),
            code=str(data.get("codigo_materia") or ""),
            name=str(data.get("nombre_materia") or ""),
            theory_hours=int(data.get("horas_academicas_teoricas") or 0),
            practice_hours=int(data.get("horas_academicas_practicas") or 0),
            lab_hours=int(data.get("horas_academicas_laboratorio") or 0),
            required_room_type_id=_opt_int(data.get("requiere_tipo_espacio_especifico")),
            required_room_type_name=data.get("requiere_tipo_espacio_nombre"),
            specialty_names=_specialties(data.get("especialidades_detalle")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "materia_id": self.id,
            "codigo_materia": self.code,
            "nombre_materia": self.name,
            "horas_academicas_teoricas": self.theory_hours,
            "horas_academicas_practicas": self.practice_hours,
            "horas_academicas_laboratorio": self.lab_hours,
            "requiere_tipo_espacio_especifico": self.required_room_type_id,
            "requiere_tipo_espacio_nombre": self.required_room_type_name,
            "especialidades_detalle": _specialties_to_api(self.specialty_names),
        }


@dataclass
class Teacher:
    id: int
    names: str
    last_names: str
    code: str = ""
    specialty_names: dict[int, str] = field(default_factory=dict)

    @property
    def specialty_ids(self) -> frozenset[int]:
        return frozenset(self.specialty_names)

    @property
    def full_name(self) -> str:
        return f"{self.names} {self.last_names}".strip()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Teacher":
        return cls(
            id=int(data["docente_id"]),
            names=str(data.get("nombres") or ""),
            last_names=str(data.get("apellidos") or ""),
            code=str(data.get("codigo_docente") or ""),
            specialty_names=_specialties(data.get("especialidades_detalle")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "docente_id": self.id,
            "nombres": self.names,
            "apellidos": self.last_names,
            "codigo_docente": self.code,
            "especialidades_detalle": _specialties_to_api(self.specialty_names),
        }


@dataclass
class Room:
    id: int
    name: str
    capacity: int
    room_type_id: Optional[int]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Room":
        return cls(
            id=int(data["espacio_id"]),
            name=str(data.get("nombre_espacio") or ""),
            capacity=int(data.get("capacidad") or 0),
            room_type_id=_opt_int(data.get("tipo_espacio")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "espacio_id": self.id,
            "nombre_espacio": self.name,
            "capacidad": self.capacity,
            "tipo_espacio": self.room_type_id,
        }


@dataclass
class Career:
    id: int
    code: str
    name: str
    total_curriculum_hours: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Career":
        return cls(
            id=int(data["carrera_id"]),
            code=str(data.get("codigo_carrera") or ""),
            name=str(data.get("nombre_carrera") or ""),
            total_curriculum_hours=int(data.get("horas_totales_curricula") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "carrera_id": self.id,
            "codigo_carrera": self.code,
            "nombre_carrera": self.name,
            "horas_totales_curricula": self.total_curriculum_hours,
        }


@dataclass
class Group:
    """
    A student group. preferred_shift keeps the raw backend label;
    use .shift for the normalized value.
    """

    id: int
    code: str
    subject_ids: list[int] = field(default_factory=list)
    preferred_shift: str = ""
    students_estimate: int = 0
    career_id: Optional[int] = None
    period_id: Optional[int] = None

    @property
    def shift(self) -> Optional[Shift]:
        return Shift.parse(self.preferred_shift)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Group":
        career_id = _opt_int(data.get("carrera"))
        detail = data.get("carrera_detalle")
        if career_id is None and isinstance(detail, dict):
            career_id = _opt_int(detail.get("carrera_id"))
        return cls(
            id=int(data["grupo_id"]),
            code=str(data.get("codigo_grupo") or ""),
            subject_ids=[int(x) for x in data.get("materias") or []],
            preferred_shift=str(data.get("turno_preferente") or ""),
            students_estimate=int(data.get("numero_estudiantes_estimado") or 0),
            career_id=career_id,
            period_id=_opt_int(data.get("periodo")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "grupo_id": self.id,
            "codigo_grupo": self.code,
            "materias": list(self.subject_ids),
            "turno_preferente": self.preferred_shift,
            "numero_estudiantes_estimado": self.students_estimate,
            "carrera": self.career_id,
            "periodo": self.period_id,
        }


@dataclass
class TeacherAvailability:
    """
    Sparse availability: a missing record means NOT available.
    """

    teacher_id: int
    period_id: int
    day_of_week: int
    block_id: int
    is_available: bool

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TeacherAvailability":
        return cls(
            teacher_id=int(data["docente"]),
            period_id=int(data["periodo"]),
            day_of_week=int(data["dia_semana"]),
            block_id=int(data["bloque_horario"]),
            is_available=bool(data.get("esta_disponible", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "docente": self.teacher_id,
            "periodo": self.period_id,
            "dia_semana": self.day_of_week,
            "bloque_horario": self.block_id,
            "esta_disponible": self.is_available,
        }


@dataclass
class ScheduleEntry:
    """
    One assigned slot: a group's subject taught by one teacher in one room
    at one (day, block) of one period.
    """

    id: Optional[int]
    group_id: int
    subject_id: int
    teacher_id: int
    room_id: int
    period_id: int
    day_of_week: int
    block_id: int

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScheduleEntry":
        return cls(
            id=_opt_int(data.get("horario_id")),
            group_id=int(data["grupo"]),
            subject_id=int(data["materia"]),
            teacher_id=int(data["docente"]),
            room_id=int(data["espacio"]),
            period_id=int(data["periodo"]),
            day_of_week=int(data["dia_semana"]),
            block_id=int(data["bloque_horario"]),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "grupo": self.group_id,
            "materia": self.subject_id,
            "docente": self.teacher_id,
            "espacio": self.room_id,
            "periodo": self.period_id,
            "dia_semana": self.day_of_week,
            "bloque_horario": self.block_id,
        }
        if self.id is not None:
            out["horario_id"] = self.id
        return out


def _index(items: Iterable[Any]) -> dict[int, Any]:
    return {item.id: item for item in items}


@dataclass
class Snapshot:
    """
    The flat collections a host hands to the resolver for one period.

    A Snapshot is treated as immutable: the with_/replace_/without_ helpers
    return new snapshots so a caller can swap its copy after a successful
    API round-trip.
    """

    blocks: list[TimeBlock] = field(default_factory=list)
    periods: list[Period] = field(default_factory=list)
    subjects: list[Subject] = field(default_factory=list)
    teachers: list[Teacher] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    careers: list[Career] = field(default_factory=list)
    availabilities: list[TeacherAvailability] = field(default_factory=list)
    schedules: list[ScheduleEntry] = field(default_factory=list)

    def block(self, block_id: Optional[int]) -> Optional[TimeBlock]:
        return _index(self.blocks).get(block_id)

    def subject(self, subject_id: Optional[int]) -> Optional[Subject]:
        return _index(self.subjects).get(subject_id)

    def teacher(self, teacher_id: Optional[int]) -> Optional[Teacher]:
        return _index(self.teachers).get(teacher_id)

    def room(self, room_id: Optional[int]) -> Optional[Room]:
        return _index(self.rooms).get(room_id)

    def group(self, group_id: Optional[int]) -> Optional[Group]:
        return _index(self.groups).get(group_id)

    def career(self, career_id: Optional[int]) -> Optional[Career]:
        return _index(self.careers).get(career_id)

    def with_entry(self, entry: ScheduleEntry) -> "Snapshot":
        return replace(self, schedules=[*self.schedules, entry])

    def replace_entry(self, entry: ScheduleEntry) -> "Snapshot":
        return replace(self, schedules=[entry if e.id == entry.id else e for e in self.schedules])

    def without_entry(self, entry_id: int) -> "Snapshot":
        return replace(self, schedules=[e for e in self.schedules if e.id != entry_id])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        return cls(
            blocks=[TimeBlock.from_api(x) for x in data.get("blocks", [])],
            periods=[Period.from_api(x) for x in data.get("periods", [])],
            subjects=[Subject.from_api(x) for x in data.get("subjects", [])],
            teachers=[Teacher.from_api(x) for x in data.get("teachers", [])],
            rooms=[Room.from_api(x) for x in data.get("rooms", [])],
            groups=[Group.from_api(x) for x in data.get("groups", [])],
            careers=[Career.from_api(x) for x in data.get("careers", [])],
            availabilities=[TeacherAvailability.from_api(x) for x in data.get("availabilities", [])],
            schedules=[ScheduleEntry.from_api(x) for x in data.get("schedules", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocks": [x.to_dict() for x in self.blocks],
            "periods": [x.to_dict() for x in self.periods],
            "subjects": [x.to_dict() for x in self.subjects],
            "teachers": [x.to_dict() for x in self.teachers],
            "rooms": [x.to_dict() for x in self.rooms],
            "groups": [x.to_dict() for x in self.groups],
            "careers": [x.to_dict() for x in self.careers],
            "availabilities": [x.to_dict() for x in self.availabilities],
            "schedules": [x.to_dict() for x in self.schedules],
        }
