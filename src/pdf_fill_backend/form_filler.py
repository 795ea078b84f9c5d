"""
AcroForm filling on top of pypdf.

This module provides functionality for:
- Loading a PDF template into an editable document model
- Resolving fully-qualified field names to text fields and choice groups
- Setting text, selecting group options, and serializing the result

Fields are classified by their structure, never by name: ``/FT /Tx`` is a
text field and ``/FT /Btn`` with the radio flag set is a choice group. Both
keys may be inherited from an ancestor field. Other field types (checkboxes,
push buttons, list boxes, signatures) are not fillable here.

Filling is best effort: a field that is unknown, unsupported, or given an
option its group does not define is logged and skipped, and the document is
always saved with whatever was applied.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import DictionaryObject, NameObject

from .errors import FieldError, FormError
from .models import FieldKind, FormFieldInfo
from .utils import is_unset, strip_pdf_name

logger = logging.getLogger(__name__)

# Field flag bits (PDF 32000-1, table 226)
RADIO_FLAG = 1 << 15
PUSHBUTTON_FLAG = 1 << 16

OFF_STATE = "/Off"


def _inherited(node: DictionaryObject, key: str) -> Any:
    seen = set()
    while isinstance(node, DictionaryObject):
        if id(node) in seen:
            raise FormError(f"/Parent chain of field {node.get('/T')!r} is cyclic")
        seen.add(id(node))
        if key in node:
            return node[key]
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return None


def _kids(node: DictionaryObject) -> List[DictionaryObject]:
    kids = (kid.get_object() for kid in node.get("/Kids", []))
    return [kid for kid in kids if isinstance(kid, DictionaryObject)]


def _widgets(node: DictionaryObject) -> List[DictionaryObject]:
    # Kids without a partial name are widgets; a field with none is its own widget.
    widgets = [kid for kid in _kids(node) if "/T" not in kid]
    return widgets or [node]


def _appearance_states(widget: DictionaryObject) -> List[str]:
    appearance = widget.get("/AP")
    if appearance is None:
        return []
    normal = appearance.get_object().get("/N")
    normal = normal.get_object() if normal is not None else None
    return list(normal.keys()) if isinstance(normal, DictionaryObject) else []


def _field_kind(node: DictionaryObject) -> Optional[FieldKind]:
    if any("/T" in kid for kid in _kids(node)):
        return None
    field_type = _inherited(node, "/FT")
    flags = int(_inherited(node, "/Ff") or 0)
    if field_type == "/Tx":
        return FieldKind.TEXT
    if field_type == "/Btn" and flags & RADIO_FLAG and not flags & PUSHBUTTON_FLAG:
        return FieldKind.CHOICE_GROUP
    return None


def _choice_states(node: DictionaryObject) -> Dict[str, str]:
    """Map each option value of a choice group to its appearance state."""
    export_values = node.get("/Opt")
    states: Dict[str, str] = {}
    for index, widget in enumerate(_widgets(node)):
        on_states = [state for state in _appearance_states(widget) if state != OFF_STATE]
        if not on_states:
            continue
        if export_values is not None and index < len(export_values):
            value = str(export_values[index].get_object())
        else:
            value = strip_pdf_name(on_states[0])
        states.setdefault(value, on_states[0])
    return states


@dataclass
class FormField:
    name: str
    kind: Optional[FieldKind]
    node: DictionaryObject
    states: Dict[str, str] = field(default_factory=dict)

    @property
    def options(self) -> List[str]:
        return list(self.states)


class FormDocument:
    """Editable form model over a cloned copy of the template."""

    def __init__(self, writer: PdfWriter):
        self._writer = writer
        self.fields: Dict[str, FormField] = {}
        self._seen: Set[int] = set()
        acroform = writer.root_object.get("/AcroForm")
        if acroform is not None:
            for ref in acroform.get_object().get("/Fields", []):
                self._register(ref.get_object(), None)

    @classmethod
    def load(cls, template: bytes) -> "FormDocument":
        try:
            reader = PdfReader(io.BytesIO(template))
            writer = PdfWriter(clone_from=reader)
        except Exception as exc:  # noqa: BLE001
            raise FormError(f"Template is not a readable PDF: {exc}") from exc
        try:
            return cls(writer)
        except FormError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise FormError(f"Template form structure is malformed: {exc}") from exc

    def _register(self, node: DictionaryObject, parent_name: Optional[str]) -> None:
        if not isinstance(node, DictionaryObject):
            return
        if id(node) in self._seen:
            raise FormError(f"field tree revisits {node.get('/T')!r} under {parent_name!r}")
        self._seen.add(id(node))
        partial_name = node.get("/T")
        if partial_name is None:
            return
        name = f"{parent_name}.{partial_name}" if parent_name else str(partial_name)
        kind = _field_kind(node)
        states = _choice_states(node) if kind is FieldKind.CHOICE_GROUP else {}
        self.fields[name] = FormField(name=name, kind=kind, node=node, states=states)
        for kid in _kids(node):
            self._register(kid, name)

    def field(self, name: str) -> FormField:
        form_field = self.fields.get(name)
        if form_field is None:
            raise FieldError("no such field in template")
        if form_field.kind is None:
            raise FieldError("field is neither a text field nor a choice group")
        return form_field

    def set_text(self, name: str, value: str) -> None:
        form_field = self.field(name)
        if form_field.kind is not FieldKind.TEXT:
            raise FieldError("field is not a text field")
        for page in self._writer.pages:
            if "/Annots" in page:
                self._writer.update_page_form_field_values(page, {name: value}, auto_regenerate=False)
        if form_field.node.get("/V") != value:
            raise FieldError("field has no widget on any page")

    def select(self, name: str, value: str) -> None:
        form_field = self.field(name)
        if form_field.kind is not FieldKind.CHOICE_GROUP:
            raise FieldError("field is not a choice group")
        state = form_field.states.get(strip_pdf_name(value))
        if state is None:
            raise FieldError(f"'{value}' is not one of the group's options {form_field.options}")

        form_field.node[NameObject("/V")] = NameObject(state)
        for widget in _widgets(form_field.node):
            selected = state if state in _appearance_states(widget) else OFF_STATE
            widget[NameObject("/AS")] = NameObject(selected)

    def set_value(self, name: str, value: str) -> None:
        if self.field(name).kind is FieldKind.CHOICE_GROUP:
            self.select(name, value)
        else:
            self.set_text(name, value)

    def describe(self) -> List[FormFieldInfo]:
        return [
            FormFieldInfo(name=form_field.name, kind=form_field.kind, options=form_field.options)
            for form_field in self.fields.values()
            if form_field.kind is not None
        ]

    def save(self) -> bytes:
        # Viewers rebuild text appearances from the stored values.
        self._writer.set_need_appearances_writer(True)
        buffer = io.BytesIO()
        self._writer.write(buffer)
        return buffer.getvalue()


def fill_form(template: bytes, values: Mapping[str, Optional[str]]) -> bytes:
    """
    Fill a template with submitted values and return the serialized PDF.

    Args:
        template: Raw bytes of the PDF template
        values: Field name to value; null and empty values are skipped

    Returns:
        The filled document as bytes

    Raises:
        FormError: If the template cannot be parsed or the document cannot
            be filled or serialized
    """
    document = FormDocument.load(template)
    applied = 0
    try:
        for name, value in values.items():
            if is_unset(value):
                continue
            try:
                document.set_value(name, value)
            except (PyPdfError, ValueError, KeyError) as exc:
                logger.warning(f'Could not set field "{name}": {exc}')
                continue
            applied += 1
        output = document.save()
    except Exception as exc:  # noqa: BLE001
        raise FormError(f"Failed to fill form: {exc}") from exc

    logger.info(f"Filled {applied} of {len(values)} submitted fields ({len(output)} bytes)")
    return output


def describe_fields(template: bytes) -> List[FormFieldInfo]:
    """List the fillable fields of a template with their kind and options."""
    return FormDocument.load(template).describe()
