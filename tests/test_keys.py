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

import struct

import pytest
from click.testing import CliRunner
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.utils import \
    decode_dss_signature

from gbltool import keys
from gbltool.image import Image
from gbltool.main import gbltool
from gbltool.tags import GBL_TYPE
from tests.constants import (PUB_ENCODINGS, SIG_ENCODINGS, make_image,
                             make_prog, make_tag, write_image)


def make_certificate(raw_key):
    return make_tag('CERTIFICATE',
                    b"\x01" + bytes(3) + raw_key + struct.pack('<I', 1) +
                    bytes(64))


def make_signed_image(raw_key, raw_sig):
    return make_image(make_certificate(raw_key),
                      make_prog(0, b"code"),
                      make_tag('SIGNATURE', raw_sig),
                      type_flags=GBL_TYPE['SIGNATURE_ECDSA'])


class TestKeys:

    def test_certificate_key(self, p256_key, raw_pubkey, raw_signature):
        img = Image(make_signed_image(raw_pubkey, raw_signature))
        key = keys.load_certificate_key(img.certificate)
        assert key.get_raw_public() == raw_pubkey
        assert key.get_public_pem() == p256_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo)
        assert key.get_public_bytes() == p256_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo)

    def test_bad_key(self):
        with pytest.raises(keys.ECDSAUsageError):
            keys.ECDSA256P1Public.from_raw(bytes(63))
        # The all zero point is not on the curve
        with pytest.raises(keys.ECDSAUsageError):
            keys.ECDSA256P1Public.from_raw(bytes(64))

    def test_signature_der(self, raw_pubkey, raw_signature):
        img = Image(make_signed_image(raw_pubkey, raw_signature))
        der = keys.signature_der(img.signature)
        r, s = decode_dss_signature(der)
        assert r == int.from_bytes(raw_signature[:32], 'big')
        assert s == int.from_bytes(raw_signature[32:], 'big')

    def test_bad_signature_size(self):
        with pytest.raises(keys.ECDSAUsageError):
            keys.raw_to_der_signature(bytes(32), bytes(31))


class TestGetPub:
    runner = CliRunner()

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path, raw_pubkey, raw_signature):
        self.image = write_image(
            tmp_path, make_signed_image(raw_pubkey, raw_signature))
        self.raw_pubkey = raw_pubkey

    @pytest.mark.parametrize("encoding", PUB_ENCODINGS)
    def test_getpub(self, encoding):
        result = self.runner.invoke(
            gbltool, ["getpub", "--encoding", encoding, self.image])
        assert result.exit_code == 0
        if encoding == 'pem':
            assert result.output.startswith("-----BEGIN PUBLIC KEY-----")
            key = serialization.load_pem_public_key(
                result.output.encode('utf-8'))
            assert key.public_bytes(
                encoding=serialization.Encoding.X962,
                format=serialization.PublicFormat.UncompressedPoint
            )[1:] == self.raw_pubkey
        elif encoding == 'der':
            key = serialization.load_der_public_key(
                bytes.fromhex(result.output.strip()))
            assert key.public_bytes(
                encoding=serialization.Encoding.X962,
                format=serialization.PublicFormat.UncompressedPoint
            )[1:] == self.raw_pubkey
        else:
            assert result.output == self.raw_pubkey.hex() + "\n"

    def test_getpub_outfile(self, tmp_path):
        outfile = tmp_path / "cert.pem"
        result = self.runner.invoke(
            gbltool, ["getpub", "-o", str(outfile), self.image])
        assert result.exit_code == 0
        assert result.output == ""
        assert outfile.read_text().startswith("-----BEGIN PUBLIC KEY-----")

    def test_getpub_no_certificate(self, tmp_path):
        img = write_image(tmp_path, make_image(), "plain.gbl")
        result = self.runner.invoke(gbltool, ["getpub", img])
        assert result.exit_code != 0
        assert "Image has no certificate" in result.output

    def test_getpub_bad_key(self, tmp_path):
        img = write_image(tmp_path, make_image(make_certificate(bytes(64))),
                          "bad.gbl")
        result = self.runner.invoke(gbltool, ["getpub", img])
        assert result.exit_code != 0
        assert "Invalid P-256 public key" in result.output


class TestGetSig:
    runner = CliRunner()

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path, raw_pubkey, raw_signature):
        self.image = write_image(
            tmp_path, make_signed_image(raw_pubkey, raw_signature))
        self.raw_signature = raw_signature

    @pytest.mark.parametrize("encoding", SIG_ENCODINGS)
    def test_getsig(self, encoding):
        result = self.runner.invoke(
            gbltool, ["getsig", "--encoding", encoding, self.image])
        assert result.exit_code == 0
        sig = bytes.fromhex(result.output.strip())
        if encoding == 'der':
            r, s = decode_dss_signature(sig)
            assert r.to_bytes(32, 'big') + s.to_bytes(32, 'big') == \
                self.raw_signature
        else:
            assert sig == self.raw_signature

    def test_getsig_outfile(self, tmp_path):
        outfile = tmp_path / "sig.bin"
        result = self.runner.invoke(
            gbltool, ["getsig", "-e", "raw", "-o", str(outfile), self.image])
        assert result.exit_code == 0
        assert outfile.read_bytes() == self.raw_signature

    def test_getsig_unsigned(self, tmp_path):
        img = write_image(tmp_path, make_image(), "plain.gbl")
        result = self.runner.invoke(gbltool, ["getsig", img])
        assert result.exit_code != 0
        assert "Image has no signature" in result.output
