"""CSV export and import tests."""
import asyncio

import httpx
import pytest

from mygames.config import Settings
from mygames.exceptions import ValidationError
from mygames.gateways.catalog import RawgCatalog
from mygames.gateways.games import GamesGateway
from mygames.importer import EXPORT_HEADER, export_csv, import_csv, parse_csv, resolve_columns
from mygames.store import CollectionStore
from factories import FakeCatalog, make_record, zelda_entry

PLACEHOLDER = "https://placehold.test/cover.png"


class TestExport:
    """CSV export of the filtered collection."""

    def test_header_and_rows(self):
        records = [
            make_record(1, "Zelda", platform="Switch", status="Completado", user_rating=9.5),
            make_record(2, "Zelda DLC", platform="Switch", parent_id=1, format="Physical"),
        ]
        lines = export_csv(records).split("\n")

        assert lines[0] == ",".join(EXPORT_HEADER)
        assert lines[1] == '1,"Zelda",Switch,Digital,Completado,9.5,No'
        assert lines[2] == '2,"Zelda DLC",Switch,Physical,Pendiente,,Sí'

    def test_title_quotes_are_doubled(self):
        line = export_csv([make_record(7, 'The "Best" Game, Deluxe', user_rating=8.0)]).split("\n")[1]
        assert line == '7,"The ""Best"" Game, Deluxe",PC,Digital,Pendiente,8,No'

    def test_empty_collection_is_header_only(self):
        assert export_csv([]) == ",".join(EXPORT_HEADER)


class TestParse:
    """Header aliases and per-row validation."""

    def test_spanish_headers(self):
        text = "Nombre,Plataforma,Estado,Formato,Nota\nHades,switch,completado,Físico,9\n"
        rows, errors = parse_csv(text)

        assert errors == []
        assert rows[0].fields == {
            "title": "Hades",
            "platform": "Switch",
            "status": "Completado",
            "format": "Physical",
            "user_rating": 9.0,
        }

    def test_missing_columns_use_defaults(self):
        rows, errors = parse_csv("title\nCeleste\n")
        assert errors == []
        assert rows[0].fields == {
            "title": "Celeste",
            "platform": "PC",
            "status": "Pendiente",
            "format": "Digital",
            "user_rating": None,
        }

    def test_byte_order_mark_is_ignored(self):
        rows, _ = parse_csv("\ufeffTítulo\nOuter Wilds\n")
        assert rows[0].fields["title"] == "Outer Wilds"

    def test_invalid_rows_are_reported_and_skipped(self):
        text = (
            "title,platform,status,rating\n"
            "Celeste,PC,Pendiente,8\n"
            "Hades,Amiga,Pendiente,\n"
            ",PC,Pendiente,\n"
            "Tunic,PC,Pendiente,11\n"
            "\n"
            "Inside,PC,Sin estado,\n"
        )
        rows, errors = parse_csv(text)

        assert [r.fields["title"] for r in rows] == ["Celeste"]
        assert [e.line for e in errors] == [3, 4, 5, 7]
        assert "Amiga" in errors[0].message

    def test_overlong_title_is_a_row_error(self):
        rows, errors = parse_csv(f"title\nHades\n{'x' * 256}\n")
        assert [r.fields["title"] for r in rows] == ["Hades"]
        assert [e.line for e in errors] == [3]
        assert "255" in errors[0].message

    def test_no_title_column_rejects_file(self):
        with pytest.raises(ValidationError):
            resolve_columns(["platform", "status"])

    def test_empty_file_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_csv("")


class FailingCatalog(FakeCatalog):
    async def search_catalog(self, query, page=1, enrich=True):
        raise httpx.ConnectError("catalog unreachable")


class TestImport:
    """Import with catalog backfill."""

    def run_import(self, session_maker, text, catalog):
        async def run():
            async with session_maker() as session:
                store = CollectionStore(GamesGateway(session, "user-1"))
                report = await import_csv(text, store, catalog, PLACEHOLDER)
                return report, store.records

        return asyncio.run(run())

    def test_matched_titles_get_catalog_metadata(self, session_maker):
        catalog = FakeCatalog({"The Legend of Zelda: Breath of the Wild": zelda_entry()})
        report, records = self.run_import(session_maker, "title,platform\nZelda,Switch\n", catalog)

        assert report.not_found == []
        assert len(report.imported) == 1
        game = report.imported[0]
        assert game.image_url == "https://media.rawg.io/zelda.jpg"
        assert game.critic_score == 97
        assert game.description == "Step into a world of discovery."
        assert game.screenshots == ["https://media.rawg.io/zelda-1.jpg"]
        assert [r.id for r in records] == [game.id]

    def test_unmatched_titles_use_placeholder(self, session_maker):
        catalog = FakeCatalog()
        report, _ = self.run_import(session_maker, "title\nMy Homebrew Game\n", catalog)

        assert report.not_found == ["My Homebrew Game"]
        game = report.imported[0]
        assert game.image_url == PLACEHOLDER
        assert game.critic_score == 0
        assert game.description is None

    def test_catalog_outage_does_not_abort_import(self, session_maker):
        report, records = self.run_import(session_maker, "title\nHades\nCeleste\n", FailingCatalog())

        assert sorted(g.title for g in report.imported) == ["Celeste", "Hades"]
        assert report.not_found == ["Hades", "Celeste"]
        assert len(records) == 2

    def test_rows_are_looked_up_one_by_one(self, session_maker):
        catalog = FakeCatalog()
        report, _ = self.run_import(
            session_maker, "title,status\nHades,Pendiente\nBad,Nope\nCeleste,Jugando\n", catalog
        )

        assert catalog.searches == ["Hades", "Celeste"]
        assert len(report.errors) == 1
        assert report.errors[0].line == 3

    def test_nothing_valid_inserts_nothing(self, session_maker):
        report, records = self.run_import(session_maker, "title,platform\nHades,Amiga\n", FakeCatalog())
        assert report.imported == []
        assert records == []

    def test_malformed_catalog_answer_falls_back_to_placeholder(self, session_maker):
        """A catalog reply that can't be mapped counts as no match for that row only."""
        seen = []

        def handler(request):
            if request.url.path != "/api/games":
                return httpx.Response(404, json={"detail": "Not found."})
            seen.append(request.url.params["search"])
            if request.url.params["search"] == "Hades":
                return httpx.Response(200, json={"count": 1, "results": [{"name": "Hades"}]})
            return httpx.Response(200, json={"count": 1, "results": [{
                "id": 9767,
                "name": "Celeste",
                "background_image": "https://media.rawg.io/celeste.jpg",
                "metacritic": 94,
            }]})

        async def run():
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            settings = Settings(
                database_url="sqlite+aiosqlite://",
                supabase_url="https://auth.example.test",
                supabase_anon_key="anon-key",
                rawg_api_key="rawg-key",
                rawg_base_url="https://rawg.test/api",
            )
            async with session_maker() as session, RawgCatalog(settings, client=client) as catalog:
                store = CollectionStore(GamesGateway(session, "user-1"))
                report = await import_csv("title\nHades\nCeleste\n", store, catalog, PLACEHOLDER)
            await client.aclose()
            return report

        report = asyncio.run(run())
        assert seen == ["Hades", "Celeste"]
        assert report.not_found == ["Hades"]
        covers = {g.title: (g.image_url, g.critic_score) for g in report.imported}
        assert covers == {
            "Hades": (PLACEHOLDER, 0),
            "Celeste": ("https://media.rawg.io/celeste.jpg", 94),
        }
