# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
GBL image parsing and validation.
"""

import logging
from collections import namedtuple
from enum import Enum

from .crc import crc32
from .cursor import ByteCursor
from .errors import ImageError, TruncatedError, UnknownTagError
from .tags import (GBL_TYPE, TAG_DECODERS, TAG_HEADER_SIZE, END_SIZE,
                   tag_name)

GBL_VERSION = 0x03000000

VerifyResult = Enum('VerifyResult',
                    ['OK', 'MISSING_HEADER', 'UNSUPPORTED_VERSION',
                     'MISSING_END', 'CHECKSUM_MISMATCH'])

TagEntry = namedtuple('TagEntry', ['tag_id', 'offset', 'length'])

SINGLE_SLOTS = ('header', 'bootloader', 'application', 'se_upgrade',
                'version_dependency', 'encryption_init', 'signature',
                'certificate', 'crc32')
LIST_SLOTS = ('metadata', 'prog', 'encryption_data')


class TagIterator:
    """Walk the tag headers of a buffer, checking every bound."""

    def __init__(self, cursor, start=0):
        self.cur = cursor
        self.off = start

    def is_empty(self):
        return self.off >= len(self.cur)

    def peek(self):
        if self.is_empty():
            return None
        if self.cur.remaining(self.off) < TAG_HEADER_SIZE:
            raise TruncatedError(
                "Truncated tag header at offset 0x{:x}: {} byte(s) left"
                .format(self.off, self.cur.remaining(self.off)))
        tag_id = self.cur.u32(self.off)
        tag_len = self.cur.u32(self.off + 4)
        value_off = self.off + TAG_HEADER_SIZE
        if self.cur.remaining(value_off) < tag_len:
            raise TruncatedError(
                "Truncated {} tag at offset 0x{:x}: length 0x{:x} exceeds "
                "the 0x{:x} byte(s) left".format(
                    tag_name(tag_id), self.off, tag_len,
                    self.cur.remaining(value_off)))
        return TagEntry(tag_id, self.off, tag_len)

    def next(self):
        tag = self.peek()
        if tag:
            self.off += TAG_HEADER_SIZE + tag.length
        return tag

    def __iter__(self):
        while not self.is_empty():
            yield self.next()


class _ImageBuilder:
    """Collects decoded records during the pass over the buffer."""

    def __init__(self):
        self.fields = dict.fromkeys(SINGLE_SLOTS)
        for slot in LIST_SLOTS:
            self.fields[slot] = []
        self.tags = []

    def add(self, slot, record, repeatable):
        if repeatable:
            self.fields[slot].append(record)
        else:
            if self.fields[slot] is not None:
                logging.debug(f"Tag for '{slot}' seen again, "
                              "keeping the last one")
            self.fields[slot] = record

    def freeze(self, img):
        for slot in SINGLE_SLOTS:
            setattr(img, slot, self.fields[slot])
        for slot in LIST_SLOTS:
            setattr(img, slot, tuple(self.fields[slot]))
        img.tags = tuple(self.tags)
        img._frozen = True


class Image:
    """A parsed GBL image.

    The image keeps a read-only view of the buffer it was built from; every
    byte field of its records is a slice of that view. The buffer must not
    be modified while the image is in use.

    Parsing happens once, in the constructor. A structurally broken buffer
    raises an ImageError and no image is produced. A bad checksum or an
    unsupported format version does not raise, use is_valid() or verify().
    Once parsed, the image can not be modified.
    """

    _frozen = False

    def __init__(self, buffer, strict=False, max_size=None):
        self._cur = ByteCursor(buffer)
        self.strict = strict
        if max_size is not None and len(self._cur) > max_size:
            raise ImageError(
                "Image size 0x{:x} exceeds the 0x{:x} byte limit".format(
                    len(self._cur), max_size))
        self._parse()

    def __setattr__(self, name, value):
        if self._frozen:
            raise AttributeError("Image is read-only, can't set '{}'"
                                 .format(name))
        super().__setattr__(name, value)

    def __delattr__(self, name):
        if self._frozen:
            raise AttributeError("Image is read-only, can't delete '{}'"
                                 .format(name))
        super().__delattr__(name)

    @classmethod
    def parse(cls, buffer, strict=False, max_size=None):
        return cls(buffer, strict=strict, max_size=max_size)

    @classmethod
    def load(cls, path, strict=False, max_size=None):
        """Load and parse an image from a given file"""
        with open(path, 'rb') as f:
            return cls(f.read(), strict=strict, max_size=max_size)

    def __repr__(self):
        return "<Image version={}, tags={}, prog={}, size=0x{:x}>".format(
                    "0x{:08x}".format(self.header.version)
                    if self.header else "N/A",
                    len(self.tags),
                    len(self.prog),
                    len(self._cur))

    def __len__(self):
        return len(self._cur)

    @property
    def buffer(self):
        return self._cur.buf

    def _parse(self):
        builder = _ImageBuilder()
        for tag in TagIterator(self._cur):
            builder.tags.append(tag)
            value_off = tag.offset + TAG_HEADER_SIZE
            decoder = TAG_DECODERS.get(tag.tag_id)
            if decoder is None:
                if self.strict:
                    raise UnknownTagError(tag.tag_id, tag.offset)
                logging.debug(f"Skipping unknown tag 0x{tag.tag_id:08x} "
                              f"at offset 0x{tag.offset:x}, "
                              f"len = {tag.length:d}")
                continue
            logging.debug(f"tag {tag_name(tag.tag_id):20s} "
                          f"offset = 0x{tag.offset:x}, len = {tag.length:d}")
            record = decoder.decode(self._cur, value_off, tag.length)
            builder.add(decoder.slot, record, decoder.repeatable)
        builder.freeze(self)

    def calculate_crc32(self):
        """CRC32 of the whole image except for its last 4 bytes."""
        return crc32(self._cur.buf, 0, max(len(self._cur) - END_SIZE, 0))

    def verify(self):
        if self.header is None:
            return VerifyResult.MISSING_HEADER
        if self.header.version != GBL_VERSION:
            return VerifyResult.UNSUPPORTED_VERSION
        if self.crc32 is None:
            return VerifyResult.MISSING_END
        if self.crc32 != self.calculate_crc32():
            return VerifyResult.CHECKSUM_MISMATCH
        return VerifyResult.OK

    def is_valid(self):
        return self.verify() is VerifyResult.OK

    @property
    def encrypted(self):
        return bool(self.header and
                    self.header.type_flags & GBL_TYPE['ENCRYPTION_AESCCM'])

    @property
    def signed(self):
        return bool(self.header and
                    self.header.type_flags & GBL_TYPE['SIGNATURE_ECDSA'])
