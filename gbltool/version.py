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
Version numbers carried by GBL tags.

Application, SE upgrade and version dependency tags carry a plain 32-bit
version word, which by convention packs four 8-bit fields, most significant
first. The bootloader tag packs its own major/minor/customer triple.
"""
from collections import namedtuple

PackedVersion = namedtuple('PackedVersion', ['major', 'minor', 'patch',
                                             'build'])


def split_version(value):
    """Split a 32-bit version word into its four 8-bit fields"""
    return PackedVersion((value >> 24) & 0xff,
                         (value >> 16) & 0xff,
                         (value >> 8) & 0xff,
                         value & 0xff)


def format_version(value):
    return "{}.{}.{}.{} (0x{:08x})".format(*split_version(value), value)


def format_bootloader_version(version):
    return "{}.{} (Customer 0x{:04X})".format(version.major, version.minor,
                                              version.customer)
