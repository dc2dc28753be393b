from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging
import re

import javalang
from javalang.parser import JavaSyntaxError
from javalang.tokenizer import LexerError

from urlmap_agent.errors import UnitLoadError
from urlmap_agent.model import ProgramUnit
from urlmap_agent.parsers.base import UnitLoader

logger = logging.getLogger(__name__)

HTTP_METHOD_ANNOTATIONS = {"GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS", "PATCH"}

JAXRS_CORE_PACKAGES = ("javax.ws.rs.core", "jakarta.ws.rs.core")

# new HashSet<>() in getSingletons() is the container, not a registered instance
COLLECTION_TYPES = {
    "HashSet", "LinkedHashSet", "TreeSet", "ArrayList", "LinkedList",
    "Object", "java.util.HashSet", "java.util.LinkedHashSet", "java.util.TreeSet",
}

_SLASHES_RE = re.compile(r"/{2,}")


def _strip_template_regex(path: str) -> str:
    # /items/{id: [0-9]{3}} -> /items/{id}
    out: List[str] = []
    i = 0
    while i < len(path):
        ch = path[i]
        if ch != "{":
            out.append(ch)
            i += 1
            continue
        depth, j = 1, i + 1
        while j < len(path) and depth:
            if path[j] == "{":
                depth += 1
            elif path[j] == "}":
                depth -= 1
            j += 1
        inner = path[i + 1 : j - 1] if depth == 0 else path[i + 1 :]
        out.append("{" + inner.split(":", 1)[0].strip() + "}")
        i = j
    return "".join(out)


def normalize_operation_path(*segments: Optional[str]) -> str:
    """Join @Path segments into one operation path: leading '/', no trailing '/'."""
    parts = [s.strip().strip("/") for s in segments if s and s.strip().strip("/")]
    path = _SLASHES_RE.sub("/", "/" + "/".join(parts))
    return _strip_template_regex(path)


def _simple(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def _type_name(t) -> Optional[str]:
    # javax.ws.rs.core.Application comes back as a sub_type chain
    if t is None:
        return None
    parts = []
    while t is not None:
        n = getattr(t, "name", None)
        if n:
            parts.append(n)
        t = getattr(t, "sub_type", None)
    return ".".join(parts) or None


class _Imports:
    def __init__(self, cu, known_units: Iterable[str]):
        self.package = cu.package.name if getattr(cu, "package", None) else ""
        self.explicit: Dict[str, str] = {}
        self.wildcards: List[str] = []
        for imp in cu.imports or []:
            if imp.static:
                continue
            if imp.wildcard:
                self.wildcards.append(imp.path)
            else:
                self.explicit[_simple(imp.path)] = imp.path
        self.known = set(known_units)

    def qualify(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        head, _, rest = name.partition(".")
        if head in self.explicit:
            # Outer.Inner with Outer imported
            return self.explicit[head] + (("$" + rest.replace(".", "$")) if rest else "")
        if "." in name and head[:1].islower():
            return name
        nested = name.replace(".", "$")
        local = f"{self.package}.{nested}" if self.package else nested
        if local in self.known:
            return local
        for w in self.wildcards:
            if f"{w}.{nested}" in self.known:
                return f"{w}.{nested}"
            if name == "Application" and w in JAXRS_CORE_PACKAGES:
                return f"{w}.{name}"
        return local


# @Path / @ApplicationPath present, but its value is not something we can evaluate
UNREADABLE = object()

# Source locations preferred when several archive paths end in the same package-relative name
PREFERRED_SOURCE_DIRS = ("WEB-INF/src/", "src/main/java/")


class JavaSourceLoader(UnitLoader):
    """Loads program units from Java sources shipped in the archive or found under source roots."""

    def __init__(
        self,
        sources: Mapping[str, str] | None = None,
        source_roots: Sequence[Path] = (),
        known_units: Iterable[str] = (),
    ):
        self.sources = dict(sources or {})
        self.source_roots = [Path(p) for p in source_roots]
        self.known_units = set(known_units)
        self._parsed: Dict[str, object] = {}
        self._constants: Dict[str, Dict[str, str]] = {}
        self._resolving: set[str] = set()

    def load(self, name: str) -> ProgramUnit:
        cu, decl, static_chain = self._find_decl(name)
        return self._build_unit(name, decl, self._imports(cu, name), static_chain)

    def _imports(self, cu, name: str) -> _Imports:
        return _Imports(cu, self.known_units | {name})

    def _find_decl(self, name: str):
        outer, *nested = name.split("$")
        rel = outer.replace(".", "/") + ".java"
        cu = self._parse(name, rel)

        decl = None
        for t in cu.types or []:
            if t.name == _simple(outer):
                decl = t
                break
        if decl is None:
            raise UnitLoadError(name, f"no type {_simple(outer)} in {rel}")

        is_static_chain = True
        for inner in nested:
            found = None
            for d in self._body(decl):
                if isinstance(d, javalang.tree.TypeDeclaration) and d.name == inner:
                    found = d
                    break
            if found is None:
                raise UnitLoadError(name, f"no nested type {inner}")
            if "static" not in (found.modifiers or set()) and isinstance(found, javalang.tree.ClassDeclaration):
                is_static_chain = False
            decl = found
        return cu, decl, is_static_chain

    def _parse(self, name: str, rel: str):
        if rel in self._parsed:
            return self._parsed[rel]
        text = self._find_source(rel)
        if text is None:
            raise UnitLoadError(name, f"no source for {rel}")
        try:
            cu = javalang.parse.parse(text)
        except (JavaSyntaxError, LexerError) as e:
            raise UnitLoadError(name, f"cannot parse {rel}: {e}") from e
        self._parsed[rel] = cu
        return cu

    def _find_source(self, rel: str) -> Optional[str]:
        if rel in self.sources:
            return self.sources[rel]
        matches = sorted(k for k in self.sources if k.endswith("/" + rel))
        if matches:
            preferred = [k for k in matches if any(k == d + rel for d in PREFERRED_SOURCE_DIRS)]
            chosen = (preferred or matches)[0]
            if len(matches) > 1:
                logger.debug("Several sources for %s, using %s: %s", rel, chosen, matches)
            return self.sources[chosen]
        for root in self.source_roots:
            p = root / rel
            if p.is_file():
                return p.read_text(encoding="utf-8", errors="ignore")
        return None

    # ------------------------------------------------------------------

    def _body(self, decl) -> list:
        body = getattr(decl, "body", None)
        if isinstance(body, list):
            return body
        # enum bodies keep their members under .declarations
        return list(getattr(body, "declarations", None) or [])

    def _build_unit(self, name: str, decl, imports: _Imports, static_chain: bool) -> ProgramUnit:
        anns = {a.name: a for a in (decl.annotations or [])}
        ann_names = frozenset(_simple(n) for n in anns)
        modifiers = decl.modifiers or set()
        is_class = isinstance(decl, javalang.tree.ClassDeclaration)
        consts = self._unit_constants(name)

        superclass = None
        if is_class and decl.extends is not None:
            superclass = imports.qualify(_type_name(decl.extends))

        app_path = None
        for n, a in anns.items():
            if _simple(n) == "ApplicationPath":
                value = self._ann_value(a, consts, imports)
                if value is UNREADABLE:
                    logger.debug("Unreadable @ApplicationPath on %s, treated as absent", name)
                else:
                    app_path = value

        body = self._body(decl)
        methods = [d for d in body if isinstance(d, javalang.tree.MethodDeclaration)]
        ctors = [d for d in body if isinstance(d, javalang.tree.ConstructorDeclaration)]

        abstract = not is_class or "abstract" in modifiers
        if ctors:
            instantiable = any(not c.parameters and "public" in (c.modifiers or set()) for c in ctors)
        else:
            instantiable = True
        instantiable = instantiable and not abstract and static_chain

        registered_classes = None
        registered_instances = None
        for m in methods:
            if m.parameters:
                continue
            if m.name == "getClasses":
                registered_classes = self._class_literals(m, imports)
            elif m.name == "getSingletons":
                registered_instances = self._created_types(m, imports)

        class_path = None
        for n, a in anns.items():
            if _simple(n) == "Path":
                class_path = self._ann_value(a, consts, imports)

        operation_paths = set()
        if class_path is UNREADABLE:
            logger.debug("Unreadable @Path on %s; no operation paths recorded", name)
        else:
            for (method_name, _), method_path in self._resource_methods(name, decl, imports).items():
                if method_path is UNREADABLE:
                    logger.debug("Unreadable @Path on %s.%s skipped", name, method_name)
                    continue
                if class_path is None and method_path is None:
                    continue
                operation_paths.add(normalize_operation_path(class_path, method_path))

        return ProgramUnit(
            name=name,
            annotations=ann_names,
            superclass=superclass,
            abstract=abstract,
            instantiable=instantiable,
            application_path=app_path,
            registered_classes=registered_classes,
            registered_instances=registered_instances,
            operation_paths=frozenset(operation_paths),
        )

    def _resource_methods(self, name: str, decl, imports: _Imports) -> Dict[Tuple[str, int], object]:
        """(method name, arity) -> method @Path value, including methods inherited from loaded supertypes.

        An override without JAX-RS annotations keeps the annotations of the method it overrides.
        """
        methods = self._declared_resource_methods(decl, imports, self._unit_constants(name))
        queue = self._supertypes(decl, imports)
        seen = {name}
        while queue:
            sup = queue.pop(0)
            if sup in seen:
                continue
            seen.add(sup)
            try:
                cu, sup_decl, _ = self._find_decl(sup)
            except UnitLoadError as e:
                logger.debug("Supertype %s of %s not loaded: %s", sup, name, e.reason)
                continue
            sup_imports = self._imports(cu, sup)
            inherited = self._declared_resource_methods(sup_decl, sup_imports, self._unit_constants(sup))
            for sig, path in inherited.items():
                methods.setdefault(sig, path)
            queue.extend(self._supertypes(sup_decl, sup_imports))
        return methods

    def _declared_resource_methods(self, decl, imports: _Imports, consts: Mapping[str, str]) -> Dict[Tuple[str, int], object]:
        out: Dict[Tuple[str, int], object] = {}
        for m in self._body(decl):
            if not isinstance(m, javalang.tree.MethodDeclaration):
                continue
            m_anns = {_simple(a.name): a for a in (m.annotations or [])}
            if not (HTTP_METHOD_ANNOTATIONS & set(m_anns)) and "Path" not in m_anns:
                continue
            sig = (m.name, len(m.parameters or []))
            out[sig] = self._ann_value(m_anns["Path"], consts, imports) if "Path" in m_anns else None
        return out

    def _supertypes(self, decl, imports: _Imports) -> List[str]:
        refs = []
        ext = getattr(decl, "extends", None)
        if isinstance(ext, list):
            refs.extend(ext)
        elif ext is not None:
            refs.append(ext)
        refs.extend(getattr(decl, "implements", None) or [])
        out = []
        for r in refs:
            q = imports.qualify(_type_name(r))
            if q:
                out.append(q)
        return out

    def _unit_constants(self, name: str) -> Dict[str, str]:
        """static final String constants of a unit, for @Path(Paths.API) style values."""
        if name in self._constants:
            return self._constants[name]
        if name in self._resolving:
            return {}
        self._resolving.add(name)
        try:
            cu, decl, _ = self._find_decl(name)
            consts = self._declared_constants(decl, self._imports(cu, name))
        except UnitLoadError as e:
            logger.debug("Constants of %s unavailable: %s", name, e.reason)
            consts = {}
        finally:
            self._resolving.discard(name)
        self._constants[name] = consts
        return consts

    def _declared_constants(self, decl, imports: _Imports) -> Dict[str, str]:
        consts: Dict[str, str] = {}
        # interface fields are implicitly static final
        implicit = isinstance(decl, javalang.tree.InterfaceDeclaration)
        for d in self._body(decl):
            if not isinstance(d, javalang.tree.FieldDeclaration):
                continue
            if not implicit and not {"static", "final"} <= (d.modifiers or set()):
                continue
            for v in d.declarators:
                value = self._literal(v.initializer, consts, imports)
                if value is not None:
                    consts[v.name] = value
        return consts

    def _class_literals(self, method, imports: _Imports) -> Tuple[str, ...]:
        out: List[str] = []
        for _, node in method.filter(javalang.tree.ClassReference):
            # com.acme.Foo.class keeps the package part in .qualifier
            raw = ".".join(p for p in (getattr(node, "qualifier", None), _type_name(node.type)) if p)
            q = imports.qualify(raw)
            if q and q not in out:
                out.append(q)
        return tuple(out)

    def _created_types(self, method, imports: _Imports) -> Tuple[str, ...]:
        out: List[str] = []
        for _, node in method.filter(javalang.tree.ClassCreator):
            raw = _type_name(node.type)
            if not raw or raw in COLLECTION_TYPES or node.body:
                continue
            q = imports.qualify(raw)
            if q and q not in out:
                out.append(q)
        return tuple(out)

    def _ann_value(self, ann, consts: Mapping[str, str], imports: _Imports):
        """Annotation value: the string, '' when no value is given, UNREADABLE otherwise."""
        el = ann.element
        if isinstance(el, list):
            pairs = [p for p in el if getattr(p, "name", None) == "value"]
            el = pairs[0].value if pairs else None
        if el is None:
            return ""
        value = self._literal(el, consts, imports)
        return UNREADABLE if value is None else value

    def _literal(self, node, consts: Mapping[str, str], imports: _Imports) -> Optional[str]:
        if node is None:
            return None
        if isinstance(node, javalang.tree.BinaryOperation) and node.operator == "+":
            left = self._literal(node.operandl, consts, imports)
            right = self._literal(node.operandr, consts, imports)
            if left is None or right is None:
                return None
            return left + right
        if isinstance(node, javalang.tree.MemberReference):
            if not node.qualifier:
                return consts.get(node.member)
            owner = imports.qualify(node.qualifier)
            return self._unit_constants(owner).get(node.member) if owner else None
        s = getattr(node, "value", None)
        if not isinstance(s, str) or not s.startswith('"'):
            logger.debug("Non-literal annotation value skipped: %r", node)
            return None
        return s[1:-1]
