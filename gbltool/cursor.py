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
Bounds-checked little-endian reads over an immutable buffer.
"""

import struct

from .errors import OutOfBoundsError

_U8 = struct.Struct('<B')
_U16 = struct.Struct('<H')
_U32 = struct.Struct('<I')


class ByteCursor:
    """Read-only view over a bytes-like object.

    Slices returned by slice() are memoryviews aliasing the original
    buffer, nothing is copied.
    """

    def __init__(self, buffer):
        view = memoryview(buffer)
        if view.format != 'B' or view.ndim != 1:
            view = view.cast('B')
        self.buf = view.toreadonly()

    def __len__(self):
        return len(self.buf)

    def remaining(self, off):
        return max(len(self.buf) - off, 0)

    def _check(self, off, size):
        if off < 0 or size < 0 or off + size > len(self.buf):
            raise OutOfBoundsError(off, size, len(self.buf))

    def _unpack(self, fmt, off):
        self._check(off, fmt.size)
        return fmt.unpack_from(self.buf, off)[0]

    def u8(self, off):
        return self._unpack(_U8, off)

    def u16(self, off):
        return self._unpack(_U16, off)

    def u32(self, off):
        return self._unpack(_U32, off)

    def slice(self, off, length):
        self._check(off, length)
        return self.buf[off:off + length]
