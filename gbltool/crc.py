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
CRC32 as used by the GBL end tag.

This is the standard reflected CRC32 (polynomial 0xEDB88320, initial value
and final XOR 0xFFFFFFFF), the same one implemented by zlib.
"""

import zlib

CRC32_CHECK = 0xcbf43926  # crc32(b"123456789")


def crc32(data, start=0, end=None):
    """Return the CRC32 of data[start:end] without copying it.

    start and end follow slice semantics, negative values count from the
    end of data.
    """
    return zlib.crc32(memoryview(data)[start:end]) & 0xffffffff
