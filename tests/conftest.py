"""
Shared fixtures: a small architecture dataset in backend table shape.
"""

import math
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from building.transform import transform_rows  # noqa: E402
from config.constant import (  # noqa: E402
    ARCHITECT_COMPOSITION_TABLE,
    BUILDING_CREDITS_TABLE,
    BUILDING_SELECT,
    BUILDINGS_TABLE,
    COMPOSITE_ARCHITECTS_TABLE,
    INDIVIDUAL_ARCHITECTS_TABLE,
    PHOTOS_TABLE,
)
from interfaces.building_store import InMemoryBuildingStore  # noqa: E402
from search_core.query_plan import QueryPlan  # noqa: E402

CENTER_LAT = 35.68
CENTER_LNG = 139.65


def north_of_center(km: float) -> float:
    """Latitude exactly ``km`` great-circle km north of the center."""
    return CENTER_LAT + math.degrees(km / 6371.0)


def _base_row(**overrides):
    row = {
        "building_id": 0,
        "uid": "",
        "slug": "",
        "title": "",
        "titleEn": "",
        "thumbnailUrl": "",
        "youtubeUrl": None,
        "completionYears": "2001",
        "parentBuildingTypes": "文化施設",
        "buildingTypes": "美術館",
        "buildingTypesEn": "museum",
        "parentStructures": "鉄筋コンクリート造",
        "structures": "RC, S",
        "prefectures": "東京都",
        "prefecturesEn": "Tokyo",
        "areas": "関東",
        "areasEn": "Kanto",
        "location": "東京都港区",
        "locationEn_from_datasheetChunkEn": "Minato, Tokyo",
        "architectDetails": "",
        "lat": CENTER_LAT,
        "lng": CENTER_LNG,
        "likes": 0,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    row.update(overrides)
    return row


def building_rows():
    return [
        _base_row(
            building_id=1, uid="b1", slug="church-of-light", title="光の教会",
            titleEn="Church of the Light", buildingTypes="教会", buildingTypesEn="church",
            parentBuildingTypes="宗教施設", lat=north_of_center(1.0), completionYears="1989",
            architectDetails="安藤忠雄",
        ),
        _base_row(
            building_id=2, uid="b2", slug="nezu-museum", title="根津美術館",
            titleEn="Nezu Museum", lat=north_of_center(3.0),
            youtubeUrl="https://www.youtube.com/watch?v=nezu", completionYears="2009",
            architectDetails="隈研吾",
        ),
        _base_row(
            building_id=3, uid="b3", slug="21st-century-museum", title="金沢21世紀美術館",
            titleEn="21st Century Museum of Contemporary Art, Kanazawa",
            prefectures="石川県", prefecturesEn="Ishikawa", areas="中部", areasEn="Chubu",
            location="石川県金沢市", locationEn_from_datasheetChunkEn="Kanazawa, Ishikawa",
            lat=36.5608, lng=136.6580, completionYears="2004",
            thumbnailUrl="https://example.com/kanazawa.jpg",
            architectDetails="妹島和世　西沢立衛",
        ),
        _base_row(
            building_id=4, uid="b4", slug="legacy-house-museum", title="住宅美術館",
            titleEn="House Museum", buildingTypes="住宅/美術館",
            buildingTypesEn="housing/museum", lat=north_of_center(2.0),
            architectDetails="安藤忠雄　隈研吾", completionYears="1990",
        ),
        _base_row(
            building_id=5, uid="b5", slug="no-coordinates", title="座標なし",
            titleEn="No Coordinates", lat=None,
        ),
        _base_row(
            building_id=6, uid="b6", slug="apartment-block", title="集合住宅タワー",
            titleEn="Apartment Tower", buildingTypes="集合住宅",
            buildingTypesEn="apartment", lat=north_of_center(4.0), completionYears="1990",
            architectDetails="無名建築家",
        ),
    ]


def architect_tables():
    return {
        INDIVIDUAL_ARCHITECTS_TABLE: [
            {"name_id": 1, "architect_name": "安藤忠雄", "architect_name_en": "Tadao Ando",
             "slug": "tadao-ando"},
            {"name_id": 2, "architect_name": "隈研吾", "architect_name_en": "Kengo Kuma",
             "slug": "kengo-kuma"},
            {"name_id": 3, "architect_name": "妹島和世", "architect_name_en": "Kazuyo Sejima",
             "slug": "kazuyo-sejima"},
            {"name_id": 4, "architect_name": "西沢立衛", "architect_name_en": "Ryue Nishizawa",
             "slug": "ryue-nishizawa"},
        ],
        COMPOSITE_ARCHITECTS_TABLE: [
            {"architect_id": 10, "architectJa": "安藤忠雄建築研究所",
             "architectEn": "Tadao Ando Architect & Associates", "slug": "tadao-ando-aa"},
            {"architect_id": 11, "architectJa": "隈研吾建築都市設計事務所",
             "architectEn": "Kengo Kuma and Associates", "slug": "kkaa"},
            {"architect_id": 12, "architectJa": "SANAA", "architectEn": "SANAA",
             "slug": "sanaa"},
            {"architect_id": 13, "architectJa": "安藤忠雄", "architectEn": "Tadao Ando",
             "slug": "tadao-ando-solo"},
        ],
        ARCHITECT_COMPOSITION_TABLE: [
            {"relation_id": 100, "architect_id": 10, "name_id": 1, "order_index": 0},
            {"relation_id": 101, "architect_id": 11, "name_id": 2, "order_index": 0},
            {"relation_id": 102, "architect_id": 12, "name_id": 4, "order_index": 1},
            {"relation_id": 103, "architect_id": 12, "name_id": 3, "order_index": 0},
            {"relation_id": 104, "architect_id": 13, "name_id": 1, "order_index": 0},
        ],
        BUILDING_CREDITS_TABLE: [
            # Building 1 is credited through two composites that both resolve to 安藤忠雄
            {"building_id": 1, "architect_id": 10, "architect_order": 0},
            {"building_id": 1, "architect_id": 13, "architect_order": 1},
            {"building_id": 2, "architect_id": 11, "architect_order": 0},
            {"building_id": 3, "architect_id": 12, "architect_order": 0},
        ],
        PHOTOS_TABLE: [
            {"id": 501, "building_id": 1, "url": "https://example.com/1.jpg",
             "thumbnail_url": "https://example.com/1_t.jpg", "likes": 3},
        ],
    }


def all_tables():
    tables = architect_tables()
    tables[BUILDINGS_TABLE] = building_rows()
    return tables


@pytest.fixture()
def tables():
    return all_tables()


@pytest.fixture()
def store(tables):
    return InMemoryBuildingStore(tables)


async def load_buildings(store):
    """Embedded and transformed buildings, the way the local engine receives them."""
    rows = (await store.select(QueryPlan(BUILDINGS_TABLE, select=BUILDING_SELECT))).rows
    return transform_rows(rows)
