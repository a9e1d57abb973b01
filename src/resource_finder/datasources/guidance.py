"""
Content-type guidance per provider type.

Guidance is static per provider and narrowed by InstructionFilters. It
never claims an edit type the provider cannot perform: the static tables
are checked against PROVIDER_EDIT_TYPES, and edit types are withheld when
the accessor at hand cannot write.
"""

import re
import logging
from typing import Dict, List, Optional, Set

from ..errors import NotFoundError
from ..models.guidance import ContentTypeGuidance, GuidanceExample, InstructionFilters
from .accessor import Capability, ResourceAccessor


logger = logging.getLogger(__name__)

# Edit types each provider's accessor implements.
PROVIDER_EDIT_TYPES: Dict[str, frozenset] = {
    'filesystem': frozenset({'searchReplace'}),
    'mcp': frozenset(),
    'notion': frozenset({'blocks', 'searchReplace'}),
    'googledocs': frozenset({'range', 'blocks', 'searchReplace'}),
    'memory': frozenset(),
}

SECTION_NAMES = ('search_replace', 'structured_data', 'plain_text', 'binary', 'workflow')

_PNG_PIXEL = 'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=='

_GUIDANCE: Dict[str, dict] = {
    'filesystem': {
        'primary_content_type': 'plain-text',
        'accepted_content_types': ['plainTextContent', 'binaryContent'],
        'accepted_edit_types': ['searchReplace'],
        'preferred_content_type': 'plainTextContent',
        'examples': [
            GuidanceExample(
                description='Create a new TypeScript file with plain text content',
                tool='write_resource',
                input={
                    'resourcePath': 'src/newFile.ts',
                    'plainTextContent': {
                        'content': 'export const config = {\n  apiUrl: "https://api.example.com"\n};',
                        'expectedLineCount': 3,
                    },
                },
                content_type='plainTextContent',
                operation='create',
            ),
            GuidanceExample(
                description='Edit an existing file using search and replace',
                tool='edit_resource',
                input={
                    'resourcePath': 'src/config.ts',
                    'operations': [{
                        'editType': 'searchReplace',
                        'searchReplace_search': 'localhost',
                        'searchReplace_replace': 'production.example.com',
                        'searchReplace_replaceAll': True,
                    }],
                },
                operation='edit',
                edit_type='searchReplace',
            ),
            GuidanceExample(
                description='Create a binary file (image, document, etc.)',
                tool='write_resource',
                input={
                    'resourcePath': 'assets/icon.png',
                    'binaryContent': {'data': _PNG_PIXEL, 'mimeType': 'image/png'},
                },
                content_type='binaryContent',
                operation='create',
            ),
        ],
        'notes': [
            'Filesystem data sources work with individual files and directories',
            'Plain text content is preferred for code, configuration, and documentation files',
            'Binary content is supported for images, PDFs, and other non-text files',
            'Search and replace operations work on multi-line string content with optional regex support',
            'All file operations are constrained to the configured data source root directory',
        ],
    },
    'mcp': {
        'primary_content_type': 'plain-text',
        'accepted_content_types': ['plainTextContent'],
        'accepted_edit_types': [],
        'preferred_content_type': 'plainTextContent',
        'examples': [
            GuidanceExample(
                description='MCP data sources are managed by external servers',
                tool='mcp',
                input={
                    'serverName': '<server-id>',
                    'toolName': 'example-tool',
                    'toolInput': 'server-specific-parameters',
                },
                operation='tool',
            ),
        ],
        'notes': [
            'MCP data sources are handled by external Model Context Protocol servers',
            'Content type handling varies by specific MCP server implementation',
            'Use the mcp tool for operations on MCP-managed resources',
            'Capabilities and supported operations depend on the MCP server',
        ],
    },
    'notion': {
        'primary_content_type': 'structured',
        'accepted_content_types': ['structuredContent', 'plainTextContent'],
        'accepted_edit_types': ['blocks', 'searchReplace'],
        'preferred_content_type': 'structuredContent',
        'examples': [
            GuidanceExample(
                description='Create a Notion page from structured blocks',
                tool='write_resource',
                input={
                    'resourcePath': 'page/New Page',
                    'structuredContent': {
                        'blocks': [{'_type': 'block', 'style': 'normal',
                                    'children': [{'_type': 'span', 'text': 'Hello'}]}],
                    },
                },
                content_type='structuredContent',
                operation='create',
            ),
            GuidanceExample(
                description='Insert a paragraph block into an existing page',
                tool='edit_resource',
                input={
                    'resourcePath': 'page/Existing Page',
                    'operations': [{
                        'editType': 'blocks',
                        'blocks_operationType': 'insert',
                        'blocks_position': 0,
                        'blocks_block': {'_type': 'block', 'style': 'normal',
                                         'children': [{'_type': 'span', 'text': 'Intro'}]},
                    }],
                },
                operation='edit',
                edit_type='blocks',
            ),
            GuidanceExample(
                description='Replace text within a page',
                tool='edit_resource',
                input={
                    'resourcePath': 'page/Existing Page',
                    'operations': [{
                        'editType': 'searchReplace',
                        'searchReplace_search': 'draft',
                        'searchReplace_replace': 'final',
                    }],
                },
                operation='edit',
                edit_type='searchReplace',
            ),
        ],
        'notes': [
            'Notion pages are made of blocks; structured content preserves formatting',
            'Plain text content is converted to paragraph blocks',
            'Block edits address blocks by position within the page',
        ],
    },
    'googledocs': {
        'primary_content_type': 'structured',
        'accepted_content_types': ['structuredContent', 'plainTextContent'],
        'accepted_edit_types': ['range', 'blocks', 'searchReplace'],
        'preferred_content_type': 'structuredContent',
        'examples': [
            GuidanceExample(
                description='Create a Google Doc from plain text',
                tool='write_resource',
                input={
                    'resourcePath': 'document/Meeting Notes',
                    'plainTextContent': {'content': 'Agenda\n- Budget', 'expectedLineCount': 2},
                },
                content_type='plainTextContent',
                operation='create',
            ),
            GuidanceExample(
                description='Apply formatting to a character range',
                tool='edit_resource',
                input={
                    'resourcePath': 'document/Meeting Notes',
                    'operations': [{
                        'editType': 'range',
                        'range_type': 'updateTextStyle',
                        'range_location': {'index': 1, 'length': 6},
                        'range_textStyle': {'bold': True},
                    }],
                },
                operation='edit',
                edit_type='range',
            ),
            GuidanceExample(
                description='Replace text throughout a document',
                tool='edit_resource',
                input={
                    'resourcePath': 'document/Meeting Notes',
                    'operations': [{
                        'editType': 'searchReplace',
                        'searchReplace_search': 'Budget',
                        'searchReplace_replace': 'Budget review',
                        'searchReplace_replaceAll': True,
                    }],
                },
                operation='edit',
                edit_type='searchReplace',
            ),
        ],
        'notes': [
            'Google Docs use 1-based character indices for range operations',
            'Range edits shift later indices; order operations from the end of the document',
            'Structured content preserves headings, lists, and styles',
        ],
    },
    'memory': {
        'primary_content_type': 'plain-text',
        'accepted_content_types': ['plainTextContent'],
        'accepted_edit_types': [],
        'preferred_content_type': 'plainTextContent',
        'examples': [],
        'notes': ['In-memory data sources are read-only snapshots'],
    },
}

_SECTIONS: Dict[str, str] = {
    'search_replace': """## Search and Replace Operations

Load the resource first and match the search text exactly, including
whitespace and line breaks. Then apply an edit_resource operation:

```json
{
  "editType": "searchReplace",
  "searchReplace_search": "exact text to find",
  "searchReplace_replace": "replacement text",
  "searchReplace_caseSensitive": true,
  "searchReplace_regexPattern": false,
  "searchReplace_replaceAll": false
}
```

- searchReplace_regexPattern: treat the search text as a regular expression
- searchReplace_replaceAll: replace every occurrence instead of the first
""",
    'structured_data': """## Structured Block Operations

Block operations insert, update or remove whole blocks by position:

```json
{
  "editType": "blocks",
  "blocks_operationType": "update",
  "blocks_position": 2,
  "blocks_block": {"_type": "block", "style": "h2", "children": [{"_type": "span", "text": "New heading"}]}
}
```

Load structured content first and check block positions before editing.
""",
    'plain_text': """## Creating Resources with Plain Text Content

Use write_resource with plainTextContent and provide the complete content:

```json
{
  "resourcePath": "path/to/new-file.ext",
  "plainTextContent": {"content": "line one\\nline two", "expectedLineCount": 2}
}
```

Count lines exactly, empty lines included. Never write placeholders or
partial content.
""",
    'binary': """## Creating Resources with Binary Content

Use write_resource with binaryContent holding Base64 data and its MIME type:

```json
{
  "resourcePath": "assets/logo.png",
  "binaryContent": {"data": "<base64>", "mimeType": "image/png"}
}
```

Match the MIME type and file extension to the actual format.
""",
    'workflow': """## General Workflow

1. Load the resource to see its current content and structure
2. Check the data source capabilities for the operations you need
3. Apply operations with edit_resource; a batch is applied atomically
4. Reload the resource to verify the result
""",
}


_EDIT_TYPE_RE = re.compile(r'"editType": "(\w+)"')


def section_edit_types(name: str) -> Set[str]:
    """Edit types named in an instruction section's examples."""
    return set(_EDIT_TYPE_RE.findall(_SECTIONS[name]))


def relevant_sections(guidance: ContentTypeGuidance) -> List[str]:
    """Instruction sections that apply to a provider's content and edit types."""
    accepted = set(guidance.accepted_edit_types)
    sections = []
    if section_edit_types('search_replace') <= accepted:
        sections.append('search_replace')
    if ('structuredContent' in guidance.accepted_content_types
            and section_edit_types('structured_data') <= accepted):
        sections.append('structured_data')
    if 'plainTextContent' in guidance.accepted_content_types:
        sections.append('plain_text')
    if 'binaryContent' in guidance.accepted_content_types:
        sections.append('binary')
    sections.append('workflow')
    return sections


def _keep_example(example: GuidanceExample, filters: InstructionFilters) -> bool:
    if filters.content_types is not None and example.content_type not in filters.content_types:
        return False
    if filters.operations is not None and example.operation not in filters.operations:
        return False
    if filters.edit_types is not None and example.edit_type not in filters.edit_types:
        return False
    return True


def build_guidance(provider_type: str, filters: Optional[InstructionFilters] = None,
                   accessor: Optional[ResourceAccessor] = None) -> ContentTypeGuidance:
    """
    Build content-type guidance for a provider.

    Args:
        provider_type: Provider type (filesystem, mcp, notion, googledocs, memory)
        filters: Optional narrowing of examples, notes and instruction sections
        accessor: Accessor the guidance describes; edit types are withheld
            when it cannot write

    Returns:
        ContentTypeGuidance

    Raises:
        NotFoundError: If the provider type has no guidance
    """
    table = _GUIDANCE.get(provider_type)
    if table is None:
        raise NotFoundError(provider_type, "no content-type guidance for provider")

    filters = filters or InstructionFilters()
    edit_types = list(table['accepted_edit_types'])
    examples = list(table['examples'])

    if accessor is not None and not accessor.has_capability(Capability.WRITE):
        logger.debug(f"Accessor for '{provider_type}' cannot write; withholding edit guidance")
        edit_types = []
        examples = [e for e in examples if e.edit_type is None and e.operation != 'create']

    assert set(edit_types) <= PROVIDER_EDIT_TYPES[provider_type], (
        f"Guidance for '{provider_type}' claims unsupported edit types: "
        f"{sorted(set(edit_types) - PROVIDER_EDIT_TYPES[provider_type])}"
    )
    assert accessor is None or not edit_types or accessor.has_capability(Capability.WRITE)

    guidance = ContentTypeGuidance(
        primary_content_type=table['primary_content_type'],
        accepted_content_types=list(table['accepted_content_types']),
        accepted_edit_types=edit_types,
        preferred_content_type=table['preferred_content_type'],
        examples=[e.model_copy(deep=True) for e in examples if _keep_example(e, filters)],
        notes=list(table['notes']) if filters.include_overview else [],
    )

    if filters.sections:
        available = relevant_sections(guidance)
        selected = {}
        for name in filters.sections:
            if name not in SECTION_NAMES:
                logger.debug(f"Unknown instruction section '{name}'")
                continue
            if name in available:
                selected[name] = _SECTIONS[name]
        claimed = set().union(*(section_edit_types(name) for name in selected))
        assert claimed <= set(guidance.accepted_edit_types), (
            f"Instructions for '{provider_type}' name unsupported edit types: "
            f"{sorted(claimed - set(guidance.accepted_edit_types))}"
        )
        guidance.instructions = selected

    return guidance
