"""
DAVE-ML reader.

Parses the table-function subset of a DAVE-ML document into
:class:`~aerotab.babel.records.DatasetRecords`: variable, breakpoint and
table definitions, functions, provenance and modification records.
Namespaces are ignored. MathML calculations, check data and uncertainty
elements are skipped.

Example:
    >>> from aerotab.babel import read_daveml
    >>> records = read_daveml("tests/data/cl_table.dml")
    >>> [f.name for f in records.functions]
    ['CL_fn']
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from aerotab.babel.records import (
    BreakpointRecord,
    DatasetRecords,
    FunctionRecord,
    GriddedTableRecord,
    ModificationRecord,
    ProvenanceRecord,
    UngriddedTableRecord,
    VariablePointsRecord,
    VariableRecord,
    VariableRefRecord,
)
from aerotab.errors import InvalidRecordError, LoadError

logger = logging.getLogger(__name__)

_NUMBER_DELIMITERS = re.compile(r"[\s,;]+")
_STRING_DELIMITERS = re.compile(r"[,;\n]+")


def read_daveml(filepath: str | Path) -> DatasetRecords:
    """
    Read a DAVE-ML file.

    Args:
        filepath: Path to the ``.dml``/``.xml`` file

    Returns:
        Records of every supported element, in document order

    Raises:
        FileNotFoundError: If the file does not exist
        LoadError: If the document is not well-formed or an element is
            malformed
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"DAVE-ML file not found: {filepath}")

    try:
        root = ET.parse(filepath).getroot()
    except ET.ParseError as exc:
        raise LoadError(f"Malformed DAVE-ML document {filepath}: {exc}") from exc

    records = parse_daveml(root)
    logger.info(
        "Read %s: %d variables, %d breakpoint sets, %d gridded tables, "
        "%d ungridded tables, %d functions",
        filepath.name,
        len(records.variables),
        len(records.breakpoints),
        len(records.gridded_tables),
        len(records.ungridded_tables),
        len(records.functions),
    )
    return records


def read_daveml_string(text: str) -> DatasetRecords:
    """Parse a DAVE-ML document held in memory."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise LoadError(f"Malformed DAVE-ML document: {exc}") from exc
    return parse_daveml(root)


def parse_daveml(root: ET.Element) -> DatasetRecords:
    """Convert a parsed ``DAVEfunc`` element tree into records."""
    _strip_namespaces(root)
    if root.tag != "DAVEfunc":
        raise LoadError(f"Expected a DAVEfunc root element, found '{root.tag}'")

    records = DatasetRecords()
    header = root.find("fileHeader")
    if header is not None:
        records.name = header.get("name", "")
        for element in header.iter("modificationRecord"):
            records.modifications.append(_modification(element))
        for element in header.iter("provenance"):
            if element.get("provID"):
                records.provenances.append(_provenance(element))

    for element in root:
        tag = element.tag
        if tag == "variableDef":
            records.variables.append(_variable(element))
        elif tag == "breakpointDef":
            records.breakpoints.append(_breakpoints(element))
        elif tag == "griddedTableDef":
            records.gridded_tables.append(_gridded_table(element))
        elif tag == "ungriddedTableDef":
            records.ungridded_tables.append(_ungridded_table(element))
        elif tag == "function":
            records.functions.append(_function(element))
        elif tag != "fileHeader":
            logger.debug("Skipping unsupported element <%s>", tag)
    return records


# ============================================================================
# Element converters
# ============================================================================


def _variable(element: ET.Element) -> VariableRecord:
    var_id = element.get("varID", "")
    initial = element.get("initialValue")
    return _record(
        VariableRecord,
        var_id,
        var_id=var_id,
        name=element.get("name", ""),
        units=element.get("units", ""),
        description=_description(element),
        initial_value=_parse_numbers(initial, var_id)[0] if initial else 0.0,
    )


def _breakpoints(element: ET.Element) -> BreakpointRecord:
    bp_id = element.get("bpID", "")
    return _record(
        BreakpointRecord,
        bp_id,
        bp_id=bp_id,
        name=element.get("name", ""),
        units=element.get("units", ""),
        description=_description(element),
        values=_parse_numbers(_child_text(element, "bpVals"), bp_id),
    )


def _gridded_table(element: ET.Element) -> GriddedTableRecord:
    gt_id = element.get("gtID", "")
    refs_element = element.find("breakpointRefs")
    refs = [] if refs_element is None else [r.get("bpID", "") for r in refs_element.iter("bpRef")]
    text = _child_text(element, "dataTable")

    fields: dict[str, Any] = {}
    if _is_numeric_table(text):
        fields["data"] = _parse_numbers(text, gt_id)
    else:
        fields["string_data"] = [s.strip() for s in _STRING_DELIMITERS.split(text) if s.strip()]

    return _record(
        GriddedTableRecord,
        gt_id or element.get("name", "griddedTable"),
        gt_id=gt_id,
        name=element.get("name", ""),
        units=element.get("units", ""),
        description=_description(element),
        breakpoint_refs=refs,
        **fields,
    )


def _ungridded_table(element: ET.Element) -> UngriddedTableRecord:
    ut_id = element.get("utID", "")
    rows = [_parse_numbers(p.text, ut_id) for p in element.iter("dataPoint")]
    count = element.get("independentVarCount")
    return _record(
        UngriddedTableRecord,
        ut_id or element.get("name", "ungriddedTable"),
        ut_id=ut_id,
        name=element.get("name", ""),
        units=element.get("units", ""),
        description=_description(element),
        independent_var_count=int(count) if count else 0,
        data_points=rows,
    )


def _variable_ref(element: ET.Element) -> dict[str, Any]:
    fields: dict[str, Any] = {"var_id": element.get("varID", "")}
    for attribute in ("min", "max"):
        if element.get(attribute) is not None:
            fields[attribute] = _parse_numbers(element.get(attribute), fields["var_id"])[0]
    for attribute in ("extrapolate", "interpolate", "interpolationType"):
        if element.get(attribute) is not None:
            fields[attribute] = element.get(attribute)
    return fields


def _variable_points(element: ET.Element) -> dict[str, Any]:
    var_id = element.get("varID", "")
    fields: dict[str, Any] = {
        "var_id": var_id,
        "name": element.get("name", ""),
        "units": element.get("units", ""),
        "values": _parse_numbers(element.text, var_id),
    }
    for attribute in ("extrapolate", "interpolate"):
        if element.get(attribute) is not None:
            fields[attribute] = element.get(attribute)
    return fields


def _function(element: ET.Element) -> FunctionRecord:
    name = element.get("name", "")
    fields: dict[str, Any] = {"name": name, "description": _description(element)}

    points = element.findall("independentVarPts")
    if points:
        fields["independent_points"] = [
            _record(VariablePointsRecord, name, **_variable_points(p)) for p in points
        ]
        dependent = element.find("dependentVarPts")
        if dependent is not None:
            fields["dependent_points"] = _record(
                VariablePointsRecord, name, **_variable_points(dependent)
            )
        return _record(FunctionRecord, name, **fields)

    fields["independent_refs"] = [
        _record(VariableRefRecord, name, **_variable_ref(r))
        for r in element.findall("independentVarRef")
    ]
    dependent = element.find("dependentVarRef")
    if dependent is not None:
        fields["dependent_ref"] = _record(VariableRefRecord, name, **_variable_ref(dependent))

    definition = element.find("functionDefn")
    if definition is None:
        raise InvalidRecordError(name, "function has neither point lists nor a functionDefn")
    fields.update(_table_source(definition, name))
    return _record(FunctionRecord, name, **fields)


def _table_source(definition: ET.Element, name: str) -> dict[str, Any]:
    for child in definition:
        tag = child.tag
        if tag == "griddedTableRef":
            return {"gridded_table_ref": child.get("gtID", "")}
        if tag == "ungriddedTableRef":
            fields: dict[str, Any] = {"ungridded_table_ref": child.get("utID", "")}
            column = child.get("dependentDataColumn")
            if column:
                fields["dependent_data_column"] = _parse_column(column, name)
            return fields
        if tag in ("griddedTableDef", "griddedTable"):
            return {"gridded_table": _gridded_table(child)}
        if tag in ("ungriddedTableDef", "ungriddedTable"):
            return {"ungridded_table": _ungridded_table(child)}
    raise InvalidRecordError(name, "functionDefn names no table")


def _provenance(element: ET.Element) -> ProvenanceRecord:
    prov_id = element.get("provID", "")
    author = element.find("author")
    return _record(
        ProvenanceRecord,
        prov_id,
        prov_id=prov_id,
        author="" if author is None else author.get("name", ""),
        description=_description(element),
    )


def _modification(element: ET.Element) -> ModificationRecord:
    mod_id = element.get("modID", "")
    return _record(
        ModificationRecord, mod_id, mod_id=mod_id, description=_description(element)
    )


# ============================================================================
# Helpers
# ============================================================================


def _record(model: type, element_id: str, **fields: Any) -> Any:
    """Construct a record, reporting validation faults as load errors."""
    try:
        return model(**fields)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {"msg": str(exc), "loc": ()}
        location = ".".join(str(part) for part in first.get("loc", ()))
        reason = f"{location}: {first['msg']}" if location else first["msg"]
        raise InvalidRecordError(element_id or model.__name__, reason) from exc


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]


def _description(element: ET.Element) -> str:
    return _child_text(element, "description").strip()


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text


def _is_numeric_table(text: str) -> bool:
    tokens = _NUMBER_DELIMITERS.split(text.strip())
    if not tokens or not tokens[0]:
        return True
    try:
        float(tokens[0])
    except ValueError:
        return False
    return True


def _parse_numbers(text: str | None, element_id: str) -> list[float]:
    tokens = [t for t in _NUMBER_DELIMITERS.split((text or "").strip()) if t]
    try:
        return [float(t) for t in tokens]
    except ValueError as exc:
        raise InvalidRecordError(element_id, f"non-numeric value ({exc})") from exc


def _parse_column(text: str, element_id: str) -> int:
    try:
        return int(text)
    except ValueError as exc:
        raise InvalidRecordError(element_id, f"dependentDataColumn '{text}' is not an integer") from exc
