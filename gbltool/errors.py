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
Exceptions raised while parsing a GBL image.

Only structural problems are raised. A bad checksum or an unsupported format
version is reported by Image.verify() instead, so that the decoded fields of
such an image stay inspectable.
"""


class ImageError(Exception):
    """Base class for all errors raised on a structurally broken image."""
    pass


class OutOfBoundsError(ImageError):
    """A read would go past the end of the buffer."""

    def __init__(self, offset, size, buffer_len):
        self.offset = offset
        self.size = size
        self.buffer_len = buffer_len
        super().__init__(
            "Read of {} byte(s) at offset 0x{:x} is past the end of the "
            "buffer (length 0x{:x})".format(size, offset, buffer_len))


class TruncatedError(ImageError):
    """A tag header or tag payload does not fit in the buffer."""
    pass


class FormatError(ImageError):
    """A known tag has a payload length its layout does not allow."""

    def __init__(self, tag, expected, actual):
        self.tag = tag
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Invalid {} tag length: expected {}, got {}".format(
                tag, expected, actual))


class UnknownTagError(ImageError):
    """An unknown tag id was found while parsing in strict mode."""

    def __init__(self, tag_id, offset):
        self.tag_id = tag_id
        self.offset = offset
        super().__init__(
            "Unknown tag 0x{:08x} at offset 0x{:x}".format(tag_id, offset))
