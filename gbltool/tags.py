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
GBL tag registry and per-tag decoders.

Every record in a GBL file starts with an 8 byte tag header, a 32-bit tag id
followed by a 32-bit payload length, both little-endian. The decoders below
turn the payload of one known tag into a record. Byte fields of the records
are read-only memoryviews into the image buffer.
"""

from collections import namedtuple

from .errors import FormatError

TAG_HEADER_SIZE = 8

TAG_VALUES = {
        'HEADER_V3':          0x03a617eb,
        'BOOTLOADER':         0xf50909f5,
        'APPLICATION':        0xf40a0af4,
        'METADATA':           0xf60808f6,
        'PROG':               0xfe0101fe,
        'PROG_LZ4':           0xfd0505fd,
        'PROG_LZMA':          0xfd0707fd,
        'ERASEPROG':          0xfd0303fd,
        'END':                0xfc0404fc,
        'SE_UPGRADE':         0x5ea617eb,
        'VERSION_DEPENDENCY': 0x76a617eb,
        'ENC_INIT':           0xfa0606fa,
        'ENC_GBL_DATA':       0xf90707f9,
        'CERTIFICATE':        0xf30b0bf3,
        'SIGNATURE':          0xf70a0af7,
}

TAG_NAMES = {v: k for k, v in TAG_VALUES.items()}

# Header type flags.
GBL_TYPE = {
        'ENCRYPTION_AESCCM': 1 << 0,
        'SIGNATURE_ECDSA':   1 << 8,
}

# Application info type flags.
APPLICATION_TYPE = {
        'ZIGBEE':        1 << 0,
        'THREAD':        1 << 1,
        'FLEX':          1 << 2,
        'BLUETOOTH':     1 << 3,
        'MCU':           1 << 4,
        'BLUETOOTH_APP': 1 << 5,
        'BOOTLOADER':    1 << 6,
        'ZWAVE':         1 << 7,
}

HEADER_SIZE = 8
BOOTLOADER_MIN_SIZE = 8
APPLICATION_SIZE = 28
PROG_MIN_SIZE = 4
END_SIZE = 4
SE_UPGRADE_MIN_SIZE = 8
VERSION_DEPENDENCY_SIZE = 8
ENC_INIT_SIZE = 16
SIGNATURE_SIZE = 64
CERTIFICATE_SIZE = 136

PRODUCT_ID_SIZE = 16
NONCE_SIZE = 12
ECDSA_P256_POINT_SIZE = 32
ECDSA_P256_KEY_SIZE = 64
ECDSA_P256_SIG_SIZE = 64

Header = namedtuple('Header', ['version', 'type_flags'])
BootloaderVersion = namedtuple('BootloaderVersion',
                               ['major', 'minor', 'customer'])
Bootloader = namedtuple('Bootloader',
                        ['bootloader_version', 'address', 'data'])
Application = namedtuple('Application',
                         ['type', 'version', 'capabilities', 'product_id'])
Program = namedtuple('Program',
                     ['flash_start_address', 'data', 'compression'])
SeUpgrade = namedtuple('SeUpgrade', ['blob_size', 'version', 'data'])
VersionDependency = namedtuple('VersionDependency',
                               ['image_type', 'statement', 'version'])
EncryptionInit = namedtuple('EncryptionInit', ['msg_len', 'nonce'])
Signature = namedtuple('Signature', ['r', 's'])
Certificate = namedtuple('Certificate',
                         ['struct_version', 'flags', 'key', 'version',
                          'signature'])


def _check_exact(name, size, length):
    if length != size:
        raise FormatError(name, str(size), length)


def _check_min(name, size, length):
    if length < size:
        raise FormatError(name, ">= {}".format(size), length)


def parse_header(cur, off, length):
    _check_exact("header", HEADER_SIZE, length)
    return Header(version=cur.u32(off), type_flags=cur.u32(off + 4))


def parse_bootloader(cur, off, length):
    _check_min("bootloader", BOOTLOADER_MIN_SIZE, length)
    # Packed as customer:16, minor:8, major:8
    version = BootloaderVersion(major=cur.u8(off + 3),
                                minor=cur.u8(off + 2),
                                customer=cur.u16(off))
    return Bootloader(bootloader_version=version,
                      address=cur.u32(off + 4),
                      data=cur.slice(off + 8, length - 8))


def parse_application(cur, off, length):
    _check_exact("application", APPLICATION_SIZE, length)
    return Application(type=cur.u32(off),
                       version=cur.u32(off + 4),
                       capabilities=cur.u32(off + 8),
                       product_id=cur.slice(off + 12, PRODUCT_ID_SIZE))


def parse_raw(cur, off, length):
    return cur.slice(off, length)


def _parse_prog(cur, off, length, compression):
    _check_min("program data", PROG_MIN_SIZE, length)
    return Program(flash_start_address=cur.u32(off),
                   data=cur.slice(off + 4, length - 4),
                   compression=compression)


def parse_prog(cur, off, length):
    return _parse_prog(cur, off, length, None)


def parse_prog_lz4(cur, off, length):
    return _parse_prog(cur, off, length, 'lz4')


def parse_prog_lzma(cur, off, length):
    return _parse_prog(cur, off, length, 'lzma')


def parse_end(cur, off, length):
    _check_exact("end", END_SIZE, length)
    return cur.u32(off)


def parse_se_upgrade(cur, off, length):
    _check_min("SE upgrade", SE_UPGRADE_MIN_SIZE, length)
    return SeUpgrade(blob_size=cur.u32(off),
                     version=cur.u32(off + 4),
                     data=cur.slice(off + 8, length - 8))


def parse_version_dependency(cur, off, length):
    _check_exact("version dependency", VERSION_DEPENDENCY_SIZE, length)
    # Bytes 2 and 3 are reserved
    return VersionDependency(image_type=cur.u8(off),
                             statement=cur.u8(off + 1),
                             version=cur.u32(off + 4))


def parse_encryption_init(cur, off, length):
    _check_exact("encryption init", ENC_INIT_SIZE, length)
    return EncryptionInit(msg_len=cur.u32(off),
                          nonce=cur.slice(off + 4, NONCE_SIZE))


def parse_signature(cur, off, length):
    _check_exact("signature", SIGNATURE_SIZE, length)
    return Signature(r=cur.slice(off, ECDSA_P256_POINT_SIZE),
                     s=cur.slice(off + ECDSA_P256_POINT_SIZE,
                                 ECDSA_P256_POINT_SIZE))


def parse_certificate(cur, off, length):
    _check_exact("certificate", CERTIFICATE_SIZE, length)
    return Certificate(struct_version=cur.u8(off),
                       flags=cur.slice(off + 1, 3),
                       key=cur.slice(off + 4, ECDSA_P256_KEY_SIZE),
                       version=cur.u32(off + 68),
                       signature=cur.slice(off + 72, ECDSA_P256_SIG_SIZE))


TagDecoder = namedtuple('TagDecoder', ['slot', 'decode', 'repeatable'])

TAG_DECODERS = {
    TAG_VALUES['HEADER_V3']:
        TagDecoder('header', parse_header, False),
    TAG_VALUES['BOOTLOADER']:
        TagDecoder('bootloader', parse_bootloader, False),
    TAG_VALUES['APPLICATION']:
        TagDecoder('application', parse_application, False),
    TAG_VALUES['METADATA']:
        TagDecoder('metadata', parse_raw, True),
    TAG_VALUES['PROG']:
        TagDecoder('prog', parse_prog, True),
    TAG_VALUES['PROG_LZ4']:
        TagDecoder('prog', parse_prog_lz4, True),
    TAG_VALUES['PROG_LZMA']:
        TagDecoder('prog', parse_prog_lzma, True),
    TAG_VALUES['ERASEPROG']:
        TagDecoder('prog', parse_prog, True),
    TAG_VALUES['END']:
        TagDecoder('crc32', parse_end, False),
    TAG_VALUES['SE_UPGRADE']:
        TagDecoder('se_upgrade', parse_se_upgrade, False),
    TAG_VALUES['VERSION_DEPENDENCY']:
        TagDecoder('version_dependency', parse_version_dependency, False),
    TAG_VALUES['ENC_INIT']:
        TagDecoder('encryption_init', parse_encryption_init, False),
    TAG_VALUES['ENC_GBL_DATA']:
        TagDecoder('encryption_data', parse_raw, True),
    TAG_VALUES['SIGNATURE']:
        TagDecoder('signature', parse_signature, False),
    TAG_VALUES['CERTIFICATE']:
        TagDecoder('certificate', parse_certificate, False),
}


def tag_name(tag_id):
    return TAG_NAMES.get(tag_id, "UNKNOWN")
