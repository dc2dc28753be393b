"""Shared fixtures: in-memory WAR archives and sample JAX-RS sources."""
from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable, Mapping

import pytest


SHOP_APPLICATION = """
package com.acme.shop;

import javax.ws.rs.ApplicationPath;
import javax.ws.rs.core.Application;
import java.util.HashSet;
import java.util.Set;

@ApplicationPath("shop")
public class ShopApplication extends Application {

    @Override
    public Set<Class<?>> getClasses() {
        Set<Class<?>> classes = new HashSet<Class<?>>();
        classes.add(ItemResource.class);
        return classes;
    }

    @Override
    public Set<Object> getSingletons() {
        Set<Object> singletons = new HashSet<Object>();
        singletons.add(new OrderResource());
        return singletons;
    }
}
"""

ITEM_RESOURCE = """
package com.acme.shop;

import io.swagger.annotations.Api;
import javax.ws.rs.GET;
import javax.ws.rs.POST;
import javax.ws.rs.Path;
import javax.ws.rs.PathParam;

@Api
@Path("/items")
public class ItemResource {

    @GET
    public String list() {
        return "[]";
    }

    @POST
    public String create(String body) {
        return body;
    }

    @GET
    @Path("{id: [0-9]+}")
    public String get(@PathParam("id") String id) {
        return id;
    }

    public String helper() {
        return "";
    }
}
"""

ORDER_RESOURCE = """
package com.acme.shop;

import javax.ws.rs.GET;
import javax.ws.rs.Path;

@Path("orders")
public class OrderResource {

    @GET
    public String list() {
        return "[]";
    }
}
"""

ADMIN_APPLICATION = """
package com.acme.admin;

import javax.ws.rs.ApplicationPath;
import javax.ws.rs.core.*;
import java.util.HashSet;
import java.util.Set;

@ApplicationPath("/admin")
public class AdminApplication extends Application {

    @Override
    public Set<Class<?>> getClasses() {
        Set<Class<?>> classes = new HashSet<Class<?>>();
        classes.add(UserResource.class);
        return classes;
    }
}
"""

USER_RESOURCE = """
package com.acme.admin;

import javax.ws.rs.GET;
import javax.ws.rs.Path;

@Path("/users")
public class UserResource {

    @GET
    public String list() {
        return "[]";
    }
}
"""

PLAIN_HELPER = """
package com.acme.shop;

public class Helper {
    public static String name() {
        return "helper";
    }
}
"""

WEB_XML_DEFAULT_APP = b"""<?xml version="1.0" encoding="UTF-8"?>
<web-app xmlns="http://xmlns.jcp.org/xml/ns/javaee" version="3.1">
  <servlet>
    <servlet-name>javax.ws.rs.core.Application</servlet-name>
  </servlet>
  <servlet-mapping>
    <servlet-name>javax.ws.rs.core.Application</servlet-name>
    <url-pattern>/sample1/*</url-pattern>
  </servlet-mapping>
</web-app>
"""


def class_entries(sources: Mapping[str, str], root: str = "WEB-INF/classes/") -> dict[str, bytes]:
    """One placeholder .class entry per source, plus the source under WEB-INF/src/."""
    entries: dict[str, bytes] = {}
    for rel, text in sources.items():
        entries[root + rel[: -len(".java")] + ".class"] = b"\xca\xfe\xba\xbe"
        entries["WEB-INF/src/" + rel] = text.encode("utf-8")
    return entries


@pytest.fixture
def make_war(tmp_path: Path) -> Callable[..., Path]:
    counter = {"n": 0}

    def _make(entries: Mapping[str, bytes], name: str | None = None) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"app{counter['n']}.war")
        with zipfile.ZipFile(path, "w") as zf:
            for ename, data in entries.items():
                zf.writestr(ename, data)
        return path

    return _make


@pytest.fixture
def shop_sources() -> dict[str, str]:
    return {
        "com/acme/shop/ShopApplication.java": SHOP_APPLICATION,
        "com/acme/shop/ItemResource.java": ITEM_RESOURCE,
        "com/acme/shop/OrderResource.java": ORDER_RESOURCE,
        "com/acme/shop/Helper.java": PLAIN_HELPER,
    }


@pytest.fixture
def admin_sources() -> dict[str, str]:
    return {
        "com/acme/admin/AdminApplication.java": ADMIN_APPLICATION,
        "com/acme/admin/UserResource.java": USER_RESOURCE,
    }
