"""
Kursverwaltung Dashboard - 데이터 모델
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass
class Record:
    """원격 저장소의 단일 레코드"""
    record_id: str
    fields: Dict = field(default_factory=dict)
    createdat: str = ""
    updatedat: str = ""

    def to_dict(self):
        return {
            "record_id": self.record_id,
            "fields": dict(self.fields),
            "createdat": self.createdat,
            "updatedat": self.updatedat,
        }

    @classmethod
    def from_dict(cls, data, record_id=None):
        return cls(
            record_id=record_id or data.get("record_id") or data.get("id", ""),
            fields=dict(data.get("fields") or {}),
            createdat=data.get("createdat") or "",
            updatedat=data.get("updatedat") or "",
        )


@dataclass(frozen=True)
class FieldSpec:
    """폼 필드 정의"""
    name: str
    label: str
    kind: str = "text"           # text | textarea | email | date | int | float | bool | ref
    required: bool = False
    ref: Optional[str] = None    # kind == "ref" 일 때 대상 엔티티 키

    @property
    def is_numeric(self):
        return self.kind in ("int", "float")


@dataclass(frozen=True)
class EntityDescriptor:
    """엔티티 유형 하나의 CRUD 설명자"""
    key: str              # "kurs"
    collection: str       # "kurse" (저장소 컬렉션 = 탭 이름)
    label: str            # "Kurs"
    display_field: str    # 참조 표시용 필드
    fields: Tuple[FieldSpec, ...] = ()

    def get_field(self, name) -> Optional[FieldSpec]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


DOZENT = EntityDescriptor(
    key="dozent",
    collection="dozenten",
    label="Dozent",
    display_field="name",
    fields=(
        FieldSpec("name", "Name", required=True),
        FieldSpec("email", "E-Mail", kind="email", required=True),
        FieldSpec("telefon", "Telefon"),
        FieldSpec("fachgebiet", "Fachgebiet"),
    ),
)

TEILNEHMER = EntityDescriptor(
    key="teilnehmer",
    collection="teilnehmer",
    label="Teilnehmer",
    display_field="name",
    fields=(
        FieldSpec("name", "Name", required=True),
        FieldSpec("email", "E-Mail", kind="email", required=True),
        FieldSpec("telefon", "Telefon"),
        FieldSpec("geburtsdatum", "Geburtsdatum", kind="date"),
    ),
)

RAUM = EntityDescriptor(
    key="raum",
    collection="raeume",
    label="Raum",
    display_field="raumname",
    fields=(
        FieldSpec("raumname", "Raumname", required=True),
        FieldSpec("gebaeude", "Gebäude"),
        FieldSpec("kapazitaet", "Kapazität", kind="int"),
    ),
)

KURS = EntityDescriptor(
    key="kurs",
    collection="kurse",
    label="Kurs",
    display_field="titel",
    fields=(
        FieldSpec("titel", "Titel", required=True),
        FieldSpec("beschreibung", "Beschreibung", kind="textarea"),
        FieldSpec("startdatum", "Startdatum", kind="date", required=True),
        FieldSpec("enddatum", "Enddatum", kind="date", required=True),
        FieldSpec("max_teilnehmer", "Max. Teilnehmer", kind="int"),
        FieldSpec("preis", "Preis (€)", kind="float"),
        FieldSpec("dozent", "Dozent", kind="ref", ref="dozent"),
        FieldSpec("raum", "Raum", kind="ref", ref="raum"),
    ),
)

ANMELDUNG = EntityDescriptor(
    key="anmeldung",
    collection="anmeldungen",
    label="Anmeldung",
    display_field="anmeldedatum",
    fields=(
        FieldSpec("teilnehmer", "Teilnehmer", kind="ref", ref="teilnehmer", required=True),
        FieldSpec("kurs", "Kurs", kind="ref", ref="kurs", required=True),
        FieldSpec("anmeldedatum", "Anmeldedatum", kind="date", required=True),
        FieldSpec("bezahlt", "Bezahlt", kind="bool"),
    ),
)

# 탭 순서대로
ENTITIES = {e.key: e for e in (KURS, DOZENT, TEILNEHMER, RAUM, ANMELDUNG)}
ENTITIES_BY_COLLECTION = {e.collection: e for e in ENTITIES.values()}
TABS = [e.collection for e in ENTITIES.values()]


def get_entity(name) -> EntityDescriptor:
    """엔티티 키("kurs") 또는 컬렉션 이름("kurse")으로 설명자 조회"""
    entity = ENTITIES.get(name) or ENTITIES_BY_COLLECTION.get(name)
    if entity is None:
        raise ValueError(f"알 수 없는 엔티티 유형: {name}")
    return entity
