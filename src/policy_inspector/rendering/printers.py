"""
Report Printers Module

Prints policy metadata and signature manifests either as YAML documents or
as human readable reports. Each entity has one printer interface with one
implementation per output format.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..errors import InvalidMetadataError, RenderError
from ..policy_metadata.metadata import (
    ANNOTATION_POLICY_AUTHOR,
    ANNOTATION_POLICY_DESCRIPTION,
    ANNOTATION_POLICY_LICENSE,
    ANNOTATION_POLICY_SOURCE,
    ANNOTATION_POLICY_TITLE,
    ANNOTATION_POLICY_URL,
    ANNOTATION_POLICY_USAGE,
    ANNOTATION_PREFIX,
    PolicyMetadata,
)
from ..registry.manifest import ImageManifest
from .formats import OutputFormat
from .markdown import MarkdownRenderer

SECTION_STYLE = 'bold magenta'
KEY_STYLE = 'bold green'

# Order in which well-known annotations are listed under "Details"
PRETTY_ANNOTATIONS = (
    ANNOTATION_POLICY_TITLE,
    ANNOTATION_POLICY_DESCRIPTION,
    ANNOTATION_POLICY_AUTHOR,
    ANNOTATION_POLICY_URL,
    ANNOTATION_POLICY_SOURCE,
    ANNOTATION_POLICY_LICENSE,
)


def to_yaml(data: Any, explicit_start: bool = False) -> str:
    """Serialize data as YAML, keeping key order."""
    try:
        return yaml.safe_dump(
            data,
            explicit_start=explicit_start,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
    except yaml.YAMLError as e:
        raise RenderError(f"Cannot serialize to YAML: {e}") from e


def _new_table() -> Table:
    table = Table(box=None, show_header=False, show_edge=False, pad_edge=False, padding=(0, 1))
    table.add_column(no_wrap=True)
    table.add_column(overflow='fold')
    return table


def _section(title: str) -> Text:
    return Text(title, style=SECTION_STYLE)


def _key(name: str) -> Text:
    return Text(name, style=KEY_STYLE)


def _bool(value: bool) -> Text:
    return Text(str(value).lower())


class MetadataPrinter(ABC):
    """Prints the metadata of a policy."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @abstractmethod
    def print(self, metadata: PolicyMetadata) -> None:
        pass


class MetadataYamlPrinter(MetadataPrinter):

    def print(self, metadata: PolicyMetadata) -> None:
        self.console.out(to_yaml(metadata.to_dict(), explicit_start=True), highlight=False, end='')


class MetadataPrettyPrinter(MetadataPrinter):
    """Terminal report: details table, rules and usage documentation."""

    def __init__(self,
                 console: Optional[Console] = None,
                 markdown: Optional[MarkdownRenderer] = None):
        super().__init__(console)
        self.markdown = markdown or MarkdownRenderer(self.console)

    def print(self, metadata: PolicyMetadata) -> None:
        self.print_generic_info(metadata)
        self.console.print()
        self.print_rules(metadata)
        self.console.print()
        self.print_usage(metadata)

    @staticmethod
    def annotation_to_row_key(annotation: str) -> str:
        key = f"{annotation}:"
        if key.startswith(ANNOTATION_PREFIX):
            key = key[len(ANNOTATION_PREFIX):]
        return key

    def print_generic_info(self, metadata: PolicyMetadata) -> None:
        if metadata.execution_mode.requires_protocol_version and metadata.protocol_version is None:
            raise InvalidMetadataError('Invalid policy: protocol_version not defined')

        # Annotations shown under "Details" are consumed from this copy
        annotations = dict(metadata.annotations or {})

        table = _new_table()
        table.add_row(_section('Details'))
        for annotation in PRETTY_ANNOTATIONS:
            value = annotations.pop(annotation, None)
            if value is not None:
                table.add_row(_key(self.annotation_to_row_key(annotation)), Text(value))

        table.add_row(_key('mutating:'), _bool(metadata.mutating))
        table.add_row(_key('context aware:'), _bool(metadata.context_aware))
        table.add_row(_key('execution mode:'), Text(str(metadata.execution_mode)))
        if metadata.execution_mode.requires_protocol_version:
            table.add_row(_key('protocol version:'), Text(metadata.protocol_version))

        annotations.pop(ANNOTATION_POLICY_USAGE, None)
        if annotations:
            table.add_row()
            table.add_row(_section('Annotations'))
            for annotation, value in annotations.items():
                table.add_row(_key(annotation), Text(value))

        self.console.print(table)

    def print_rules(self, metadata: PolicyMetadata) -> None:
        rules_yaml = to_yaml(metadata.to_dict()['rules'])
        self._print_section_title('Rules')
        self.markdown.render(f"```yaml\n{rules_yaml}```")

    def print_usage(self, metadata: PolicyMetadata) -> None:
        usage = (metadata.annotations or {}).get(ANNOTATION_POLICY_USAGE)
        if usage is None:
            return
        self._print_section_title('Usage')
        self.markdown.render(usage)

    def _print_section_title(self, title: str) -> None:
        table = _new_table()
        table.add_row(_section(title))
        self.console.print(table)


class SignaturesPrinter(ABC):
    """Prints the signature manifest of a policy."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @abstractmethod
    def print(self, signatures: ImageManifest) -> None:
        pass


class SignaturesYamlPrinter(SignaturesPrinter):

    def print(self, signatures: ImageManifest) -> None:
        self.console.out(to_yaml(signatures.to_dict(), explicit_start=True), highlight=False, end='')


class SignaturesPrettyPrinter(SignaturesPrinter):
    """One small table per signature layer."""

    def print(self, signatures: ImageManifest) -> None:
        for layer in signatures.layers:
            table = _new_table()
            table.add_row(_section('Digest: '), Text(layer.digest))
            table.add_row(_section('Media type: '), Text(layer.media_type))
            table.add_row(_section('Size: '), Text(str(layer.size)))
            if layer.annotations is not None:
                table.add_row(_section('Annotations'))
                for annotation, value in layer.annotations.items():
                    table.add_row(_key(annotation), Text(value))
            self.console.print(table)
            self.console.print()


_METADATA_PRINTERS: Dict[OutputFormat, Type[MetadataPrinter]] = {
    OutputFormat.STRUCTURED: MetadataYamlPrinter,
    OutputFormat.HUMAN_READABLE: MetadataPrettyPrinter,
}

_SIGNATURES_PRINTERS: Dict[OutputFormat, Type[SignaturesPrinter]] = {
    OutputFormat.STRUCTURED: SignaturesYamlPrinter,
    OutputFormat.HUMAN_READABLE: SignaturesPrettyPrinter,
}


def get_printer(output_format: OutputFormat, console: Optional[Console] = None) -> MetadataPrinter:
    return _METADATA_PRINTERS[output_format](console)


def get_signatures_printer(output_format: OutputFormat,
                           console: Optional[Console] = None) -> SignaturesPrinter:
    return _SIGNATURES_PRINTERS[output_format](console)


def render_metadata(metadata: PolicyMetadata,
                    output_format: OutputFormat,
                    console: Optional[Console] = None) -> None:
    """Print policy metadata in the requested format."""
    get_printer(output_format, console).print(metadata)


def render_signatures(signatures: ImageManifest,
                      output_format: OutputFormat,
                      console: Optional[Console] = None) -> None:
    """Print a signature manifest in the requested format."""
    get_signatures_printer(output_format, console).print(signatures)
