"""
Upload Validation
=================

Type and size checks that run before any storage call. Every failure is
a ValidationError subclass whose message is shown to the user verbatim.
"""

import os
from collections import namedtuple

from ...core.errors import FileTooLargeError, UnsupportedFileTypeError, ValidationError

MB = 1024 * 1024

DEFAULT_LIMITS = {
    'image': 50 * MB,
    'video': 300 * MB,
    'document': 10 * MB,
}

ALLOWED_TYPES = {
    'image': {
        'image/jpeg', 'image/jpg', 'image/png', 'image/gif', 'image/webp',
        'image/svg+xml', 'image/bmp', 'image/tiff',
    },
    'video': {
        'video/mp4', 'video/mpeg', 'video/quicktime', 'video/x-msvideo', 'video/avi',
        'video/webm', 'video/ogg', 'video/3gpp', 'video/x-flv',
    },
    'document': {
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'text/plain',
        'application/vnd.ms-powerpoint',
        'application/vnd.openxmlformats-officedocument.presentationml.presentation',
        'application/vnd.ms-excel',
        'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    },
}

# Which categories each upload endpoint accepts
KINDS = {
    'media': ('image', 'video'),
    'image': ('image',),
    'video': ('video',),
    'document': ('document',),
}

TYPE_ERRORS = {
    'media': 'Invalid file type. Please upload images (JPEG, PNG, GIF, WebP, SVG, BMP, TIFF) '
             'or videos (MP4, MPEG, MOV, AVI, WebM, OGG, 3GP, FLV).',
    'image': 'Invalid file type. Please upload a JPEG, PNG, GIF, WebP, SVG, BMP or TIFF image.',
    'video': 'Invalid file type. Please upload an MP4, MPEG, MOV, AVI, WebM, OGG, 3GP or FLV video.',
    'document': 'Invalid file type. Please upload PDF, Word, PowerPoint, Excel, or text files.',
}

GENERIC_TYPES = {'', 'application/octet-stream', 'binary/octet-stream'}

# Content type assumed from the extension when the declared type is generic
EXTENSION_TYPES = {
    'jpg': 'image/jpeg', 'jpeg': 'image/jpeg', 'png': 'image/png', 'gif': 'image/gif',
    'webp': 'image/webp', 'svg': 'image/svg+xml', 'bmp': 'image/bmp',
    'tif': 'image/tiff', 'tiff': 'image/tiff',
    'mp4': 'video/mp4', 'm4v': 'video/mp4', 'mpeg': 'video/mpeg', 'mpg': 'video/mpeg',
    'mov': 'video/quicktime', 'avi': 'video/x-msvideo', 'webm': 'video/webm',
    'ogv': 'video/ogg', '3gp': 'video/3gpp', 'flv': 'video/x-flv',
    'pdf': 'application/pdf',
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'txt': 'text/plain',
    'ppt': 'application/vnd.ms-powerpoint',
    'pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'xls': 'application/vnd.ms-excel',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}

# (offset, signature, content type)
MAGIC_NUMBERS = [
    (0, b'\xff\xd8\xff', 'image/jpeg'),
    (0, b'\x89PNG\r\n\x1a\n', 'image/png'),
    (0, b'GIF87a', 'image/gif'),
    (0, b'GIF89a', 'image/gif'),
    (0, b'%PDF-', 'application/pdf'),
    (0, b'\x1a\x45\xdf\xa3', 'video/webm'),
    (0, b'FLV', 'video/x-flv'),
]

# ISO base media brands (bytes 8-12, after 'ftyp'); HEIC/AVIF share the box
FTYP_BRANDS = {
    b'qt  ': 'video/quicktime',
    b'3gp4': 'video/3gpp', b'3gp5': 'video/3gpp', b'3gp6': 'video/3gpp', b'3g2a': 'video/3gpp',
    b'isom': 'video/mp4', b'iso2': 'video/mp4', b'iso4': 'video/mp4', b'iso5': 'video/mp4',
    b'iso6': 'video/mp4', b'mp41': 'video/mp4', b'mp42': 'video/mp4', b'avc1': 'video/mp4',
    b'M4V ': 'video/mp4', b'dash': 'video/mp4', b'mmp4': 'video/mp4', b'f4v ': 'video/mp4',
}

UploadSpec = namedtuple('UploadSpec', ['category', 'content_type', 'extension'])


def file_extension(filename):
    _, ext = os.path.splitext(filename or '')
    return ext.lstrip('.').lower()


def sniff_content_type(head):
    """Guess a content type from the first bytes of a file"""
    if not head:
        return None
    if head[:4] == b'RIFF' and head[8:12] == b'WEBP':
        return 'image/webp'
    if head[:4] == b'RIFF' and head[8:12] == b'AVI ':
        return 'video/x-msvideo'
    if head[4:8] == b'ftyp':
        return FTYP_BRANDS.get(head[8:12])
    for offset, signature, content_type in MAGIC_NUMBERS:
        if head[offset:offset + len(signature)] == signature:
            return content_type
    return None


def category_for(content_type):
    """Map an allowed MIME type to image/video/document, None otherwise"""
    content_type = (content_type or '').split(';')[0].strip().lower()
    for category, types in ALLOWED_TYPES.items():
        if content_type in types:
            return category
    return None


def validate_upload(filename, content_type, size, kind='media', limits=None, head=None):
    """Validate an upload before touching storage.

    Args:
        filename: Original client filename.
        content_type: Declared MIME type (may be empty or generic).
        size: Size in bytes.
        kind: 'media', 'image', 'video' or 'document'.
        limits: Optional {category: max bytes} overriding DEFAULT_LIMITS.
        head: Optional first bytes of the file, used when the declared
            type is missing or generic.

    Returns:
        UploadSpec(category, content_type, extension)
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown upload kind: {kind}")
    if not filename:
        raise ValidationError('No file selected')
    if not size:
        raise ValidationError('Uploaded file is empty')

    extension = file_extension(filename)
    declared = (content_type or '').split(';')[0].strip().lower()
    if declared in GENERIC_TYPES:
        declared = sniff_content_type(head) or EXTENSION_TYPES.get(extension, '')

    # A specific declared type must itself be allowed; the extension never overrides it
    category = category_for(declared)
    if category not in KINDS[kind]:
        raise UnsupportedFileTypeError(TYPE_ERRORS[kind])

    limits = {**DEFAULT_LIMITS, **(limits or {})}
    max_size = limits[category]
    if size > max_size:
        raise FileTooLargeError(
            f"File size exceeds {max_size // MB}MB limit for {category} uploads"
        )

    return UploadSpec(category=category, content_type=declared, extension=_stored_extension(extension, declared))


def _stored_extension(extension, content_type):
    """Keep the client's extension when it names the type, else use the type's own"""
    if EXTENSION_TYPES.get(extension) == content_type:
        return extension
    for candidate, known_type in EXTENSION_TYPES.items():
        if known_type == content_type:
            return candidate
    return extension or 'bin'
