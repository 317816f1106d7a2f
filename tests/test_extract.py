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

from click.testing import CliRunner
from intelhex import IntelHex

from gbltool.main import gbltool
from gbltool.tags import GBL_TYPE
from tests.constants import (make_application, make_image, make_prog,
                             make_tag, write_image)


class TestExtract:
    runner = CliRunner()

    def extract(self, tmp_path, data, outname):
        outfile = str(tmp_path / outname)
        result = self.runner.invoke(
            gbltool, ["extract", write_image(tmp_path, data), outfile])
        return result, outfile

    def test_extract_hex(self, tmp_path):
        data = make_image(make_application(),
                          make_prog(0x1000, b"abcd"),
                          make_prog(0x1008, b"efgh", 'ERASEPROG'))
        result, outfile = self.extract(tmp_path, data, "out.hex")
        assert result.exit_code == 0
        assert "Extracted 2 program section(s), base address 0x00001000" in \
            result.output

        ih = IntelHex(outfile)
        assert ih.minaddr() == 0x1000
        assert ih.maxaddr() == 0x100b
        assert ih.tobinstr(start=0x1000, size=4) == b"abcd"
        assert ih.tobinstr(start=0x1008, size=4) == b"efgh"

    def test_extract_bin(self, tmp_path):
        data = make_image(make_prog(0x1000, b"abcd"),
                          make_prog(0x1008, b"efgh"))
        result, outfile = self.extract(tmp_path, data, "out.bin")
        assert result.exit_code == 0
        with open(outfile, 'rb') as f:
            assert f.read() == b"abcd" + b"\xff" * 4 + b"efgh"

    def test_extract_sections_in_order(self, tmp_path):
        """Later sections are applied over earlier ones"""
        data = make_image(make_prog(0x0, b"aaaa"),
                          make_prog(0x2, b"bb"))
        result, outfile = self.extract(tmp_path, data, "out.bin")
        assert result.exit_code == 0
        with open(outfile, 'rb') as f:
            assert f.read() == b"aabb"

    def test_extract_compressed(self, tmp_path):
        data = make_image(make_prog(0x1000, b"abcd"),
                          make_prog(0x2000, b"xz", 'PROG_LZMA'))
        result, _ = self.extract(tmp_path, data, "out.hex")
        assert result.exit_code != 0
        assert "Program data at 0x00002000 is lzma compressed" in \
            result.output

    def test_extract_encrypted(self, tmp_path):
        data = make_image(make_tag('ENC_GBL_DATA', b"secret"),
                          type_flags=GBL_TYPE['ENCRYPTION_AESCCM'])
        result, _ = self.extract(tmp_path, data, "out.hex")
        assert result.exit_code != 0
        assert "Encrypted images can not be extracted" in result.output

    def test_extract_no_program(self, tmp_path):
        data = make_image(make_application(), make_prog(0x1000, b""))
        result, _ = self.extract(tmp_path, data, "out.hex")
        assert result.exit_code != 0
        assert "Image has no program data" in result.output

    def test_extract_invalid(self, tmp_path):
        data = bytearray(make_image(make_prog(0x1000, b"abcd")))
        data[10] ^= 0x01
        result, outfile = self.extract(tmp_path, bytes(data), "out.hex")
        assert result.exit_code != 0
        assert "Invalid image: Unsupported GBL format version" in \
            result.output
