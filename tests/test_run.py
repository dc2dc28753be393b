"""End-to-end tests: WAR archive -> scan -> report."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from urlmap_agent.archive import prepare_archive, read_archive, unit_name_for
from urlmap_agent.errors import ArchiveError
from urlmap_agent.model import OperationMapping, SingleMapping, Unresolved
from urlmap_agent.run import build_report, run_urlmap, scan_archive
from urlmap_agent.writer import join_url, to_markdown

from tests.conftest import ORDER_RESOURCE, WEB_XML_DEFAULT_APP, class_entries


class TestArchive:
    def test_unit_name_for(self) -> None:
        assert unit_name_for("WEB-INF/classes/com/acme/Foo.class", "WEB-INF/classes/") == "com.acme.Foo"
        assert unit_name_for("WEB-INF/classes/com/acme/Foo$Bar.class", "WEB-INF/classes/") == "com.acme.Foo$Bar"
        assert unit_name_for("WEB-INF/lib/x.jar", "WEB-INF/classes/") is None
        assert unit_name_for("WEB-INF/classes/log4j.properties", "WEB-INF/classes/") is None

    def test_read_archive(self, make_war, shop_sources) -> None:
        entries = class_entries(shop_sources)
        entries["WEB-INF/classes/com/acme/shop/ItemResource.java"] = b"// duplicate name"
        entries["WEB-INF/web.xml"] = WEB_XML_DEFAULT_APP
        contents = read_archive(make_war(entries))
        assert contents.unit_names == [
            "com.acme.shop.ShopApplication",
            "com.acme.shop.ItemResource",
            "com.acme.shop.OrderResource",
            "com.acme.shop.Helper",
        ]
        assert contents.descriptor == WEB_XML_DEFAULT_APP
        assert "WEB-INF/src/com/acme/shop/Helper.java" in contents.sources
        assert "com/acme/shop/ItemResource.java" in contents.sources

    def test_not_a_zip(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.war"
        bad.write_text("nope")
        with pytest.raises(ArchiveError):
            read_archive(bad)

    def test_prepare_local_archive(self, make_war) -> None:
        path = make_war({"index.html": b""})
        assert prepare_archive(str(path)) == path.resolve()

    def test_prepare_missing_archive(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveError, match="not found"):
            prepare_archive(str(tmp_path / "missing.war"))


class TestScanArchive:
    def test_default_application(self, make_war) -> None:
        entries = {
            "WEB-INF/classes/com/acme/shop/OrderResource.class": b"",
            "WEB-INF/src/com/acme/shop/OrderResource.java": ORDER_RESOURCE.encode(),
            "WEB-INF/web.xml": WEB_XML_DEFAULT_APP,
        }
        scan = scan_archive(make_war(entries))
        assert scan.result == SingleMapping("/sample1/*")
        report = build_report(scan)
        assert report.status == "single"
        assert report.endpoints[0].urls == ["/sample1/orders"]

    def test_single_application(self, make_war, shop_sources) -> None:
        scan = scan_archive(make_war(class_entries(shop_sources)))
        assert [u.name for u in scan.classification.mount_units] == ["com.acme.shop.ShopApplication"]
        assert scan.result == SingleMapping("/shop")

        report = build_report(scan)
        items = next(e for e in report.endpoints if e.name == "com.acme.shop.ItemResource")
        assert items.urls == ["/shop/items", "/shop/items/{id}"]
        assert report.mounts[0].endpoints == ["com.acme.shop.ItemResource", "com.acme.shop.OrderResource"]

    def test_two_applications(self, make_war, shop_sources, admin_sources) -> None:
        scan = scan_archive(make_war(class_entries({**shop_sources, **admin_sources})))
        assert scan.result == OperationMapping({
            "/items": "/shop",
            "/items/{id}": "/shop",
            "/orders": "/shop",
            "/users": "/admin",
        })
        report = build_report(scan)
        assert report.status == "table"
        users = next(e for e in report.endpoints if e.name == "com.acme.admin.UserResource")
        assert users.urls == ["/admin/users"]

    def test_two_applications_sharing_a_path(self, make_war, shop_sources, admin_sources) -> None:
        admin = dict(admin_sources)
        admin["com/acme/admin/UserResource.java"] = admin["com/acme/admin/UserResource.java"].replace(
            '"/users"', '"/orders"'
        )
        scan = scan_archive(make_war(class_entries({**shop_sources, **admin})))
        assert isinstance(scan.result, Unresolved)
        assert scan.result.operation_path == "/orders"
        report = build_report(scan)
        assert report.status == "unresolved"
        assert report.operations == {}
        assert all(e.urls == [] for e in report.endpoints)

    def test_units_without_source_are_skipped(self, make_war, shop_sources) -> None:
        entries = class_entries(shop_sources)
        entries["WEB-INF/classes/com/acme/shop/Generated.class"] = b""
        scan = scan_archive(make_war(entries))
        assert scan.skipped_units == ["com.acme.shop.Generated"]
        assert scan.result == SingleMapping("/shop")
        md = to_markdown(build_report(scan))
        assert "_Mapping ignores 1 units that could not be loaded._" in md

    def test_bad_descriptor_is_ignored(self, make_war, shop_sources) -> None:
        entries = class_entries(shop_sources)
        entries["WEB-INF/web.xml"] = b"<web-app><servlet>"
        scan = scan_archive(make_war(entries))
        assert scan.descriptor is None
        assert scan.result == SingleMapping("/shop")

    def test_source_roots(self, make_war, tmp_path: Path, shop_sources) -> None:
        root = tmp_path / "java"
        for rel, text in shop_sources.items():
            (root / rel).parent.mkdir(parents=True, exist_ok=True)
            (root / rel).write_text(text)
        entries = {
            f"WEB-INF/classes/{rel[:-5]}.class": b"" for rel in shop_sources
        }
        scan = scan_archive(make_war(entries), source_roots=[root])
        assert scan.result == SingleMapping("/shop")


class TestReport:
    @pytest.mark.parametrize(
        ("mapping", "op", "expected"),
        [
            ("/sample1/*", "/items", "/sample1/items"),
            ("/api", "/items", "/api/items"),
            ("", "/items", "/items"),
            ("/*", "/items", "/items"),
            ("/api/", "items", "/api/items"),
            (None, "/items", None),
        ],
    )
    def test_join_url(self, mapping, op, expected) -> None:
        assert join_url(mapping, op) == expected

    def test_run_writes_json_and_markdown(self, make_war, shop_sources, tmp_path: Path) -> None:
        out = tmp_path / "out"
        report = run_urlmap(str(make_war(class_entries(shop_sources))), out_dir=out)
        data = json.loads((out / "urlmap.json").read_text(encoding="utf-8"))
        assert data["status"] == "single"
        assert data["url_mapping"] == "/shop"
        md = (out / "urlmap.md").read_text(encoding="utf-8")
        assert md == to_markdown(report)
        assert "**URL mapping:** `/shop`" in md

    def test_run_notes_skipped_units_next_to_single_mapping(
        self, make_war, shop_sources, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        entries = class_entries(shop_sources)
        entries["WEB-INF/classes/com/acme/shop/Generated.class"] = b""
        report = run_urlmap(str(make_war(entries)), out_dir=tmp_path)
        assert report.url_mapping == "/shop"
        assert "Mapping ignores 1 skipped units" in capsys.readouterr().out

    def test_run_without_skipped_units_has_no_note(
        self, make_war, shop_sources, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        run_urlmap(str(make_war(class_entries(shop_sources))), out_dir=tmp_path)
        assert "Mapping ignores" not in capsys.readouterr().out


PATHS_CONSTANTS = """
package com.acme.shop;

public final class Paths {
    public static final String API = "/api";
    public static final String ITEMS = "items";
}
"""

CONSTANT_APPLICATION = """
package com.acme.shop;

import javax.ws.rs.ApplicationPath;
import javax.ws.rs.core.Application;

@ApplicationPath(Paths.API)
public class ConstApplication extends Application {
}
"""

BASE_RESOURCE = """
package com.acme.common;

import javax.ws.rs.GET;
import javax.ws.rs.Path;

public abstract class BaseResource {
    @GET
    @Path("orders")
    public String orders() { return "[]"; }
}
"""


class TestAnnotationValuesInArchive:
    def test_constant_application_path_without_source_is_unknown(self, make_war) -> None:
        scan = scan_archive(make_war(class_entries({"com/acme/shop/ConstApplication.java": CONSTANT_APPLICATION})))
        assert [u.name for u in scan.classification.mount_units] == ["com.acme.shop.ConstApplication"]
        assert scan.result == SingleMapping(None)

    def test_constant_application_path_with_source(self, make_war) -> None:
        entries = class_entries({
            "com/acme/shop/ConstApplication.java": CONSTANT_APPLICATION,
            "com/acme/shop/Paths.java": PATHS_CONSTANTS,
        })
        assert scan_archive(make_war(entries)).result == SingleMapping("/api")

    def test_inherited_path_collides_across_applications(self, make_war, shop_sources, admin_sources) -> None:
        admin = dict(admin_sources)
        admin["com/acme/admin/UserResource.java"] = admin["com/acme/admin/UserResource.java"].replace(
            '"/users"', '"/"'
        ).replace("public class UserResource", "public class UserResource extends com.acme.common.BaseResource")
        sources = {**shop_sources, **admin, "com/acme/common/BaseResource.java": BASE_RESOURCE}
        scan = scan_archive(make_war(class_entries(sources)))
        assert scan.units["com.acme.admin.UserResource"].operation_paths == frozenset({"/", "/orders"})
        assert isinstance(scan.result, Unresolved)
        assert scan.result.operation_path == "/orders"
