"""
Unit tests for content-type guidance.
"""

import shutil
import tempfile

import pytest

from resource_finder.datasources.filesystem import FilesystemResourceAccessor
from resource_finder.datasources.guidance import (
    PROVIDER_EDIT_TYPES, SECTION_NAMES, build_guidance, relevant_sections, section_edit_types
)
from resource_finder.errors import NotFoundError
from resource_finder.models.guidance import InstructionFilters


class TestBuildGuidance:
    """Test cases for build_guidance."""

    def setup_method(self):
        """Set up a temporary root for accessor-aware guidance."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up the temporary root."""
        shutil.rmtree(self.temp_dir)

    def test_filesystem_defaults(self):
        """Test unfiltered filesystem guidance."""
        guidance = build_guidance('filesystem')

        assert guidance.primary_content_type == 'plain-text'
        assert guidance.preferred_content_type == 'plainTextContent'
        assert guidance.accepted_edit_types == ['searchReplace']
        assert guidance.supports_edit_type('searchReplace')
        assert not guidance.supports_edit_type('range')
        assert len(guidance.examples) == 3
        assert len(guidance.notes) == 5
        assert guidance.instructions is None

    def test_every_provider_claims_only_supported_edit_types(self):
        """Test that every provider's guidance stays within its edit types."""
        for provider_type, supported in PROVIDER_EDIT_TYPES.items():
            guidance = build_guidance(provider_type)
            assert set(guidance.accepted_edit_types) <= supported
            for example in guidance.examples:
                assert example.edit_type is None or example.edit_type in supported

    def test_structured_providers(self):
        """Test guidance for block-structured providers."""
        googledocs = build_guidance('googledocs')
        notion = build_guidance('notion')

        assert googledocs.primary_content_type == 'structured'
        assert googledocs.supports_edit_type('range')
        assert not notion.supports_edit_type('range')
        assert notion.supports_edit_type('blocks')

    def test_content_type_filter(self):
        """Test narrowing examples by content type."""
        filters = InstructionFilters(contentTypes=['binaryContent'])

        guidance = build_guidance('filesystem', filters)

        assert [e.content_type for e in guidance.examples] == ['binaryContent']

    def test_operation_and_edit_type_filters(self):
        """Test narrowing examples by operation and edit type."""
        edits = build_guidance('googledocs', InstructionFilters(operations=['edit']))
        ranges = build_guidance('googledocs', InstructionFilters(editTypes=['range']))

        assert len(edits.examples) == 2
        assert [e.edit_type for e in ranges.examples] == ['range']

    def test_overview_can_be_excluded(self):
        """Test dropping the general notes."""
        guidance = build_guidance('filesystem', InstructionFilters(includeOverview=False))

        assert guidance.notes == []
        assert len(guidance.examples) == 3

    def test_sections(self):
        """Test that only relevant, known sections are rendered."""
        filters = InstructionFilters(sections=['search_replace', 'structured_data', 'binary', 'bogus'])

        guidance = build_guidance('filesystem', filters)

        assert list(guidance.instructions) == ['search_replace', 'binary']
        assert guidance.instructions['binary'].startswith('## Creating Resources with Binary Content')

    def test_relevant_sections(self):
        """Test which sections apply to each provider."""
        assert relevant_sections(build_guidance('filesystem')) == [
            'search_replace', 'plain_text', 'binary', 'workflow',
        ]
        assert relevant_sections(build_guidance('notion')) == [
            'search_replace', 'structured_data', 'plain_text', 'workflow',
        ]
        assert set(relevant_sections(build_guidance('mcp'))) <= set(SECTION_NAMES)

    def test_structured_section_uses_block_edits(self):
        """Test that the structured section only names edit types the provider supports."""
        guidance = build_guidance('notion', InstructionFilters(sections=['structured_data']))

        text = guidance.instructions['structured_data']
        assert '"editType": "blocks"' in text
        assert 'structuredData' not in text
        assert section_edit_types('structured_data') == {'blocks'}

    def test_rendered_sections_claim_only_supported_edit_types(self):
        """Test every provider's rendered sections against its edit-type registry."""
        filters = InstructionFilters(sections=list(SECTION_NAMES))

        for provider_type, supported in PROVIDER_EDIT_TYPES.items():
            guidance = build_guidance(provider_type, filters)
            for name in guidance.instructions:
                assert section_edit_types(name) <= supported, (provider_type, name)

    def test_read_only_accessor(self):
        """Test that edit guidance is withheld when the accessor cannot write."""
        accessor = FilesystemResourceAccessor(self.temp_dir, capabilities=['read', 'list'])

        guidance = build_guidance('filesystem', accessor=accessor)

        assert guidance.accepted_edit_types == []
        assert guidance.examples == []
        assert 'search_replace' not in relevant_sections(guidance)

    def test_writable_accessor(self):
        """Test that a writable accessor gets the full guidance."""
        accessor = FilesystemResourceAccessor(self.temp_dir)

        guidance = build_guidance('filesystem', accessor=accessor)

        assert guidance.accepted_edit_types == ['searchReplace']

    def test_unknown_provider(self):
        """Test that an unknown provider type raises NotFoundError."""
        with pytest.raises(NotFoundError):
            build_guidance('dropbox')

    def test_examples_are_copies(self):
        """Test that callers cannot modify the shared example tables."""
        guidance = build_guidance('filesystem')
        guidance.examples[0].input['resourcePath'] = 'changed'

        assert build_guidance('filesystem').examples[0].input['resourcePath'] == 'src/newFile.ts'

    def test_to_dict(self):
        """Test dictionary conversion omits absent instructions."""
        data = build_guidance('mcp').to_dict()

        assert 'instructions' not in data
        assert data['examples'][0]['operation'] == 'tool'
