"""
Test suite for rendering module.
"""

import io
from unittest.mock import MagicMock

import pytest
import yaml
from rich.console import Console

from policy_inspector.errors import OutputFormatError, RenderError
from policy_inspector.policy_metadata import PolicyMetadata
from policy_inspector.rendering import MarkdownRenderer, OutputFormat, render_metadata, render_signatures
from policy_inspector.rendering.printers import MetadataPrettyPrinter, to_yaml

from test_signatures import signature_manifest
from wasm_builder import POD_PRIVILEGED_METADATA


def new_console():
    return Console(file=io.StringIO(), width=200, color_system=None)


class TestOutputFormat:
    """Test cases for OutputFormat selection."""

    def test_default_is_human_readable(self):
        assert OutputFormat.from_option(None) == OutputFormat.HUMAN_READABLE

    def test_known_values(self):
        assert OutputFormat.from_option('yaml') == OutputFormat.STRUCTURED
        assert OutputFormat.from_option('pretty') == OutputFormat.HUMAN_READABLE

    def test_unknown_value(self):
        with pytest.raises(OutputFormatError) as exc_info:
            OutputFormat.from_option('json')
        assert str(exc_info.value) == "Invalid output format 'json'"


class TestMetadataRendering:
    """Test cases for metadata printers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.console = new_console()
        self.metadata = PolicyMetadata.model_validate(POD_PRIVILEGED_METADATA)

    def output(self):
        return self.console.file.getvalue()

    def test_yaml_document(self):
        render_metadata(self.metadata, OutputFormat.STRUCTURED, self.console)

        output = self.output()
        assert output.startswith('---\n')
        assert yaml.safe_load(output) == self.metadata.to_dict()

    def test_pretty_details(self):
        render_metadata(self.metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        assert 'Details' in output
        assert 'title:' in output
        assert 'Limit the ability to create privileged containers' in output
        assert 'mutating:' in output
        assert 'context aware:' in output
        assert 'execution mode:' in output
        assert 'kubewarden-wapc' in output
        assert 'protocol version:' in output

    def test_details_follow_fixed_order(self):
        render_metadata(self.metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        keys = ['title:', 'description:', 'author:', 'url:', 'source:', 'license:', 'mutating:']
        positions = [output.index(key) for key in keys]
        assert positions == sorted(positions)

    def test_known_annotations_are_not_repeated(self):
        render_metadata(self.metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        annotations_section = output[output.index('Annotations'):]
        assert 'io.kubewarden.policy.title' not in output
        assert 'io.kubewarden.policy.usage' not in output
        assert 'io.kubewarden.policy.category' in annotations_section
        assert 'io.kubewarden.policy.category' not in output[:output.index('Annotations')]

    def test_no_annotations_section_without_extra_annotations(self):
        annotations = dict(POD_PRIVILEGED_METADATA['annotations'])
        del annotations['io.kubewarden.policy.category']
        metadata = PolicyMetadata.model_validate(dict(POD_PRIVILEGED_METADATA, annotations=annotations))

        render_metadata(metadata, OutputFormat.HUMAN_READABLE, self.console)

        assert 'Annotations' not in self.output()

    def test_protocol_version_hidden_for_other_modes(self):
        metadata = PolicyMetadata.model_validate(
            dict(POD_PRIVILEGED_METADATA, executionMode='opa', protocolVersion='v1')
        )

        render_metadata(metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        assert 'protocol version:' not in output
        assert 'opa' in output

    def test_rules_and_usage(self):
        render_metadata(self.metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        assert 'Rules' in output
        assert 'apiVersions' in output
        assert 'Usage' in output
        assert 'Reject privileged pods.' in output
        assert output.index('Rules') < output.index('Usage')

    def test_usage_omitted_when_missing(self):
        metadata = PolicyMetadata.model_validate(dict(POD_PRIVILEGED_METADATA, annotations=None))

        render_metadata(metadata, OutputFormat.HUMAN_READABLE, self.console)

        output = self.output()
        assert 'Usage' not in output
        assert 'title:' not in output

    def test_row_key(self):
        assert MetadataPrettyPrinter.annotation_to_row_key('io.kubewarden.policy.title') == 'title:'
        assert MetadataPrettyPrinter.annotation_to_row_key('custom') == 'custom:'


class TestSignaturesRendering:
    """Test cases for signature printers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.console = new_console()
        self.manifest = signature_manifest()

    def test_yaml_document(self):
        render_signatures(self.manifest, OutputFormat.STRUCTURED, self.console)

        output = self.console.file.getvalue()
        document = yaml.safe_load(output)
        assert output.startswith('---\n')
        assert document['layers'][0]['mediaType'] == 'application/vnd.dev.cosign.simplesigning.v1+json'
        assert document['layers'][0]['size'] == 242

    def test_pretty_layers(self):
        render_signatures(self.manifest, OutputFormat.HUMAN_READABLE, self.console)

        output = self.console.file.getvalue()
        assert 'Digest:' in output
        assert 'sha256:' + 'b' * 64 in output
        assert 'Media type:' in output
        assert 'Size:' in output
        assert '242' in output
        assert 'Annotations' in output
        assert 'dev.cosignproject.cosign/signature' in output


class TestMarkdownRenderer:
    """Test cases for MarkdownRenderer."""

    def test_render(self):
        console = new_console()

        MarkdownRenderer(console).render('# Title\n\nSome *text*')

        assert 'Some text' in console.file.getvalue()

    def test_broken_pipe_is_silent(self):
        console = MagicMock()
        console.print.side_effect = BrokenPipeError()

        MarkdownRenderer(console).render('text')

    def test_other_failures_propagate(self):
        console = MagicMock()
        console.print.side_effect = OSError('disk full')

        with pytest.raises(RenderError):
            MarkdownRenderer(console).render('text')


class TestYamlSerialization:

    def test_serialization_failure(self):
        with pytest.raises(RenderError):
            to_yaml({'value': object()})

    def test_key_order_is_kept(self):
        assert to_yaml({'b': 1, 'a': 2}) == 'b: 1\na: 2\n'
