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
ECDSA P-256 material found in GBL certificate and signature tags.

These wrappers only convert the raw bytes into standard encodings, nothing
here checks a signature.
"""

import sys
from contextlib import contextmanager

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import \
    encode_dss_signature

RAW_KEY_SIZE = 64
RAW_SIG_SIZE = 64


class ECDSAUsageError(Exception):
    pass


@contextmanager
def _open_output(file):
    if isinstance(file, str):
        with open(file, 'w') as f:
            yield f
    else:
        yield file


class ECDSA256P1Public():
    """
    Wrapper around an ECDSA P-256 public key.
    """
    def __init__(self, key):
        self.key = key

    @staticmethod
    def from_raw(raw):
        """Build the key from its 64 byte X || Y form."""
        raw = bytes(raw)
        if len(raw) != RAW_KEY_SIZE:
            raise ECDSAUsageError(
                "Raw P-256 key must be {} bytes, got {}".format(
                    RAW_KEY_SIZE, len(raw)))
        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(
                    ec.SECP256R1(), b'\x04' + raw)
        except ValueError as e:
            raise ECDSAUsageError("Invalid P-256 public key: {}".format(e))
        return ECDSA256P1Public(key)

    def get_public_bytes(self):
        return self.key.public_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PublicFormat.SubjectPublicKeyInfo)

    def get_public_pem(self):
        return self.key.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo)

    def get_raw_public(self):
        point = self.key.public_bytes(
                encoding=serialization.Encoding.X962,
                format=serialization.PublicFormat.UncompressedPoint)
        # Drop the 0x04 uncompressed point marker
        return point[1:]

    def emit_public_pem(self, file=sys.stdout):
        with _open_output(file) as f:
            f.write(self.get_public_pem().decode('utf-8'))

    def emit_public_der(self, file=sys.stdout):
        with _open_output(file) as f:
            print(self.get_public_bytes().hex(), file=f)

    def emit_raw_public(self, file=sys.stdout):
        with _open_output(file) as f:
            print(self.get_raw_public().hex(), file=f)


def raw_to_der_signature(r, s):
    """Encode the big-endian r and s halves of a signature as DER"""
    if len(r) + len(s) != RAW_SIG_SIZE:
        raise ECDSAUsageError("Raw P-256 signature must be {} bytes".format(
            RAW_SIG_SIZE))
    return encode_dss_signature(int.from_bytes(bytes(r), 'big'),
                                int.from_bytes(bytes(s), 'big'))
