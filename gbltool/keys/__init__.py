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
Key material carried by GBL images.
"""

from .ecdsa import ECDSA256P1Public, ECDSAUsageError, raw_to_der_signature


def load_certificate_key(certificate):
    """Return the public key of a parsed certificate tag"""
    return ECDSA256P1Public.from_raw(certificate.key)


def signature_der(signature):
    """Return a parsed signature tag as a DER encoded ECDSA signature"""
    return raw_to_der_signature(signature.r, signature.s)
