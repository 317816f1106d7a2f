#! /usr/bin/env python3
#
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

import logging
import os.path
import sys

import click
from intelhex import IntelHex

from gbltool import gbltool_version
from gbltool import keys
from gbltool.dumpinfo import dump_imginfo, load_image
from gbltool.image import VerifyResult
from gbltool.version import format_version

MIN_PYTHON_VERSION = (3, 8)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by gbltool."
             % MIN_PYTHON_VERSION)

INTEL_HEX_EXT = "hex"
DEFAULT_MAX_IMAGE_SIZE = 16 * 1024 * 1024
valid_pub_encodings = ['pem', 'der', 'raw']
valid_sig_encodings = ['der', 'raw']

VERIFY_MESSAGES = {
    VerifyResult.MISSING_HEADER: "No header tag found; is this a GBL image?",
    VerifyResult.UNSUPPORTED_VERSION: "Unsupported GBL format version",
    VerifyResult.MISSING_END: "No end tag found; is the image complete?",
    VerifyResult.CHECKSUM_MISMATCH: "Image has an invalid CRC32 checksum",
}


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail('%s is not a valid integer. Please use code literals '
                      'prefixed with 0b/0B, 0o/0O, or 0x/0X as necessary.'
                      % value, param, ctx)


def setup_logging(ctx, param, value):
    if value:
        logging.basicConfig(format='%(levelname)5s: %(message)s',
                            level=logging.DEBUG, stream=sys.stdout)
    return value


verbose_option = click.option(
    '-v', '--verbose', is_flag=True, expose_value=False, is_eager=True,
    callback=setup_logging, help='Log every tag while parsing')
strict_option = click.option(
    '--strict', default=False, is_flag=True,
    help='Reject tags with an unknown id instead of skipping them')
max_size_option = click.option(
    '--max-size', type=BasedIntParamType(), required=False,
    default=DEFAULT_MAX_IMAGE_SIZE, show_default=True,
    help='Refuse images larger than this many bytes')


def load_valid_image(imgfile, strict=False, max_size=None):
    img = load_image(imgfile, strict=strict, max_size=max_size)
    result = img.verify()
    if result != VerifyResult.OK:
        raise click.UsageError("Invalid image: {}".format(
            VERIFY_MESSAGES[result]))
    return img


@click.argument('imgfile')
@max_size_option
@strict_option
@verbose_option
@click.command(help="Check the format version and CRC32 checksum of a GBL "
                    "image")
def verify(imgfile, strict, max_size):
    img = load_image(imgfile, strict=strict, max_size=max_size)
    ret = img.verify()
    if ret == VerifyResult.OK:
        print("Image was correctly validated")
        print("Image CRC32: {:#010x}".format(img.crc32))
        if img.application:
            print("Application version: {}".format(
                format_version(img.application.version)))
        return
    print(VERIFY_MESSAGES.get(ret, "Unknown return code: {}".format(ret)))
    sys.exit(1)


@click.argument('imgfile')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save image information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print image information to output')
@max_size_option
@strict_option
@verbose_option
@click.command(help='Print every tag of a GBL image and its validation '
                    'status')
def dumpinfo(imgfile, outfile, silent, strict, max_size):
    dump_imginfo(imgfile, outfile, silent, strict, max_size)
    print("dumpinfo has run successfully")


@click.argument('outfile')
@click.argument('imgfile')
@max_size_option
@strict_option
@verbose_option
@click.command(help='Write the program sections of a GBL image to an Intel '
                    'HEX or binary file')
def extract(imgfile, outfile, strict, max_size):
    img = load_valid_image(imgfile, strict=strict, max_size=max_size)
    if img.encrypted:
        raise click.UsageError("Encrypted images can not be extracted")
    h = IntelHex()
    for prog in img.prog:
        if prog.compression is not None:
            raise click.UsageError(
                "Program data at {:#010x} is {} compressed".format(
                    prog.flash_start_address, prog.compression))
        h.frombytes(bytes(prog.data), offset=prog.flash_start_address)
    if len(h) == 0:
        raise click.UsageError("Image has no program data")

    ext = os.path.splitext(outfile)[1][1:].lower()
    if ext == INTEL_HEX_EXT:
        h.tofile(outfile, 'hex')
    else:
        # Gaps between sections are filled with erased flash
        h.padding = 0xff
        with open(outfile, 'wb') as f:
            f.write(h.tobinstr())
    print("Extracted {} program section(s), base address {:#010x}".format(
        len(img.prog), h.minaddr()))


@click.argument('imgfile')
@click.option('-e', '--encoding', metavar='encoding',
              type=click.Choice(valid_pub_encodings),
              default=valid_pub_encodings[0],
              help='Valid encodings: {}'.format(
                  ', '.join(valid_pub_encodings)))
@click.option('-o', '--output', metavar='output', required=False,
              help='Specify the output file\'s name. \
                    The stdout is used if it is not provided.')
@max_size_option
@click.command(help='Dump the public key of the certificate of a GBL image')
def getpub(imgfile, encoding, output, max_size):
    img = load_image(imgfile, max_size=max_size)
    if img.certificate is None:
        raise click.UsageError("Image has no certificate")
    try:
        key = keys.load_certificate_key(img.certificate)
    except keys.ECDSAUsageError as e:
        raise click.UsageError(str(e))

    if not output:
        output = sys.stdout
    if encoding == 'pem':
        key.emit_public_pem(file=output)
    elif encoding == 'der':
        key.emit_public_der(file=output)
    else:
        key.emit_raw_public(file=output)


@click.argument('imgfile')
@click.option('-e', '--encoding', metavar='encoding',
              type=click.Choice(valid_sig_encodings),
              default=valid_sig_encodings[0],
              help='Valid encodings: {}'.format(
                  ', '.join(valid_sig_encodings)))
@click.option('-o', '--output', metavar='filename', required=False,
              help='Write the signature to a binary file instead of '
                   'printing it as hex')
@max_size_option
@click.command(help='Dump the ECDSA signature of a GBL image (it is not '
                    'verified)')
def getsig(imgfile, encoding, output, max_size):
    img = load_image(imgfile, max_size=max_size)
    if img.signature is None:
        raise click.UsageError("Image has no signature")
    if encoding == 'der':
        sig = keys.signature_der(img.signature)
    else:
        sig = bytes(img.signature.r) + bytes(img.signature.s)

    if output:
        with open(output, 'wb') as f:
            f.write(sig)
    else:
        print(sig.hex())


class AliasesGroup(click.Group):

    _aliases = {
        "info": "dumpinfo",
    }

    def list_commands(self, ctx):
        cmds = [k for k in self.commands]
        aliases = [k for k in self._aliases]
        return sorted(cmds + aliases)

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        if cmd_name in self._aliases:
            return click.Group.get_command(self, ctx, self._aliases[cmd_name])
        return None


@click.command(help='Print gbltool version information')
def version():
    print(gbltool_version)


@click.command(cls=AliasesGroup,
               context_settings=dict(help_option_names=['-h', '--help']))
def gbltool():
    pass


gbltool.add_command(verify)
gbltool.add_command(dumpinfo)
gbltool.add_command(extract)
gbltool.add_command(getpub)
gbltool.add_command(getsig)
gbltool.add_command(version)


if __name__ == '__main__':
    gbltool()
