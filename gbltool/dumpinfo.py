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
Parse and print the tags of a GBL image.
"""
import os.path
import sys

import click
import yaml

from .cursor import ByteCursor
from .errors import ImageError
from .image import Image, TagEntry
from .tags import (APPLICATION_TYPE, GBL_TYPE, TAG_DECODERS, TAG_HEADER_SIZE,
                   BootloaderVersion, tag_name)
from .version import format_bootloader_version, format_version

_LINE_LENGTH = 60
_PREVIEW_BYTES = 32

FLAG_FIELDS = {
    ('HEADER_V3', 'type_flags'): GBL_TYPE,
    ('APPLICATION', 'type'): APPLICATION_TYPE,
}
VERSION_FIELDS = {
    ('APPLICATION', 'version'),
    ('SE_UPGRADE', 'version'),
    ('VERSION_DEPENDENCY', 'version'),
    ('CERTIFICATE', 'version'),
}


def load_image(imgfile, strict=False, max_size=None):
    """Read and parse imgfile, turning failures into usage errors."""
    try:
        with open(imgfile, "rb") as f:
            b = f.read()
    except FileNotFoundError:
        raise click.UsageError("Image file not found ({})".format(imgfile))
    try:
        return Image(b, strict=strict, max_size=max_size)
    except ImageError as e:
        raise click.UsageError("Invalid image: {}".format(e))


def record_fields(record):
    """Flatten a decoded record into an ordered dict of its fields."""
    if isinstance(record, int):
        return {"crc32": record}
    if isinstance(record, memoryview):
        return {"data": record}
    return record._asdict()


def decode_tag(cur, tag):
    decoder = TAG_DECODERS.get(tag.tag_id)
    if decoder is None:
        return {"data": cur.slice(tag.offset + TAG_HEADER_SIZE, tag.length)}
    return record_fields(
        decoder.decode(cur, tag.offset + TAG_HEADER_SIZE, tag.length))


def parse_flags(value, flags):
    if not value:
        return hex(value)
    names = ["{} ({})".format(name, hex(bit))
             for name, bit in flags.items() if value & bit]
    unknown = value & ~sum(flags.values())
    if unknown:
        names.append("UNKNOWN ({})".format(hex(unknown)))
    return ("\n" + " " * 20).join(names)


def parse_bytes(data):
    text = bytes(data[:_PREVIEW_BYTES]).hex()
    if len(data) > _PREVIEW_BYTES:
        text += "..."
    return "{} ({} bytes)".format(text, len(data))


def format_field(name, key, value):
    if (name, key) in FLAG_FIELDS:
        return parse_flags(value, FLAG_FIELDS[(name, key)])
    if (name, key) in VERSION_FIELDS:
        return format_version(value)
    if isinstance(value, BootloaderVersion):
        return format_bootloader_version(value)
    if isinstance(value, memoryview):
        return parse_bytes(value)
    if value is None:
        return "None"
    if isinstance(value, int):
        return hex(value)
    return str(value)


def yaml_value(value):
    if isinstance(value, memoryview):
        return bytes(value)
    if isinstance(value, BootloaderVersion):
        return dict(value._asdict())
    return value


def print_in_row(row_text):
    row_text = "#### " + row_text + " "
    fill = "#" * (_LINE_LENGTH - len(row_text))
    print(row_text + fill)


def print_field(key, value):
    print(key, ":", " " * (19 - len(key)), value, sep="")


def print_tag(tag: TagEntry, fields):
    name = tag_name(tag.tag_id)
    print_in_row("Tag {} (offset: {})".format(name, hex(tag.offset)))
    print_field("type", "{} ({:#010x})".format(name, tag.tag_id))
    print_field("len", hex(tag.length))
    for key, value in fields.items():
        print_field(key, format_field(name, key, value))
    print("#" * _LINE_LENGTH)


def dump_imginfo(imgfile, outfile=None, silent=False, strict=False,
                 max_size=None):
    """Parse a GBL image and print/save the available information."""
    img = load_image(imgfile, strict=strict, max_size=max_size)
    cur = ByteCursor(img.buffer)
    tags = [(tag, decode_tag(cur, tag)) for tag in img.tags]
    result = img.verify()

    # Generating output yaml file
    if outfile is not None:
        imgdata = {
            "size": len(img),
            "result": result.name,
            "crc32": {"stored": img.crc32,
                      "calculated": img.calculate_crc32()},
            "tags": [{"type": tag_name(tag.tag_id),
                      "id": tag.tag_id,
                      "offset": tag.offset,
                      "len": tag.length,
                      "fields": {k: yaml_value(v)
                                 for k, v in fields.items()}}
                     for tag, fields in tags],
        }
        with open(outfile, "w") as outf:
            yaml.dump(imgdata, outf, sort_keys=False)

    if silent:
        sys.exit(0)

    print("Printing content of GBL image:", os.path.basename(imgfile), "\n")

    for tag, fields in tags:
        print_tag(tag, fields)

    print_in_row("Summary")
    stored = "missing" if img.crc32 is None else "{:#010x}".format(img.crc32)
    print_field("encrypted", "Yes" if img.encrypted else "No")
    print_field("signed", "Yes" if img.signed else "No")
    print_field("program sections", len(img.prog))
    print_field("crc32 (stored)", stored)
    print_field("crc32 (calculated)",
                "{:#010x}".format(img.calculate_crc32()))
    print_field("validation", result.name)
    print_in_row("End of Image")
