# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime
from hashlib import sha256

from ._http import Field, RequestDescriptor
from .canonical import CanonicalForm, canonical_form
from .config import SigningConfig
from .diagnostics import DiagnosticsSink
from .timestamps import SigningTimestamp

_LOGGER = logging.getLogger(__name__)

ALGORITHM: str = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR: str = "aws4_request"


@dataclass(frozen=True, kw_only=True)
class SigningMaterial:
    """Everything derived while signing one request.

    Only ``authorization`` is sent. The rest is kept for diagnosing signature
    mismatches.
    """

    amz_date: str
    date_stamp: str
    credential_scope: str
    canonical_request: str
    string_to_sign: str
    signature: str
    authorization: str
    signed_headers: str


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
    return f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm to requests
    sent through an API gateway.

    The signer holds no per-request state and can be shared between threads.

    :param diagnostics: Optional sink that receives the intermediate values of each
        signing call.
    :param clock: Optional callable returning the current ``datetime``. Defaults to
        the system clock.
    """

    def __init__(
        self,
        *,
        diagnostics: DiagnosticsSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._diagnostics = diagnostics
        self._clock = clock

    def sign(
        self,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        timestamp: SigningTimestamp | None = None,
    ) -> RequestDescriptor:
        """Generate and apply a SigV4 signature to a copy of the supplied request.

        :param config: Credentials, region, service and the host to sign for.
        :param request: The request to sign. It is not modified.
        :param timestamp: Fixed signing time. Defaults to the current time.
        """
        new_request = deepcopy(request)
        self.sign_in_place(config=config, request=new_request, timestamp=timestamp)
        return new_request

    def sign_in_place(
        self,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        timestamp: SigningTimestamp | None = None,
    ) -> SigningMaterial:
        """Sign ``request`` and upsert the signing headers into its fields.

        Any existing ``X-Amz-Date``, ``Host``, ``X-Amz-Security-Token`` or
        ``Authorization`` header is replaced rather than duplicated.
        """
        material = self.signing_material(
            config=config, request=request, timestamp=timestamp
        )
        request.fields.upsert("x-amz-date", material.amz_date)
        request.fields.upsert("host", config.host)
        if config.session_token:
            request.fields.upsert("x-amz-security-token", config.session_token)
        request.fields.upsert("Authorization", material.authorization)
        return material

    def signing_material(
        self,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        timestamp: SigningTimestamp | None = None,
    ) -> SigningMaterial:
        """Run the full signing algorithm without modifying the request."""
        if timestamp is None:
            timestamp = SigningTimestamp.now(self._clock)
        _LOGGER.debug(
            "Signing %s %s for host %s at %s",
            request.method,
            request.path,
            config.host,
            timestamp.amz_date,
        )

        form = self.canonical_form(config=config, request=request, timestamp=timestamp)
        canonical_request = form.canonical_request(request.method)
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, config=config, timestamp=timestamp
        )
        key = self.signing_key(
            secret_key=config.secret_key,
            date_stamp=timestamp.date_stamp,
            region=config.region,
            service=config.service,
        )
        signature = self.signature(string_to_sign=string_to_sign, signing_key=key)
        scope = credential_scope(timestamp.date_stamp, config.region, config.service)
        authorization = self.generate_authorization_field(
            credential=f"{config.access_key}/{scope}",
            signed_headers=form.signed_headers.split(";"),
            signature=signature,
        )

        material = SigningMaterial(
            amz_date=timestamp.amz_date,
            date_stamp=timestamp.date_stamp,
            credential_scope=scope,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
            signature=signature,
            authorization=authorization.as_string(),
            signed_headers=form.signed_headers,
        )
        if self._diagnostics is not None:
            self._diagnostics.emit(material)
        return material

    def canonical_form(
        self,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        timestamp: SigningTimestamp,
    ) -> CanonicalForm:
        return canonical_form(
            request,
            host=config.host,
            amz_date=timestamp.amz_date,
            session_token=config.session_token,
        )

    def canonical_request(
        self,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        timestamp: SigningTimestamp,
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        :param config: Signing configuration supplying the host and session token.
        :param request: The request to canonicalize.
        :param timestamp: The signing time.
        """
        form = self.canonical_form(config=config, request=request, timestamp=timestamp)
        return form.canonical_request(request.method)

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        config: SigningConfig,
        timestamp: SigningTimestamp,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        scope = credential_scope(timestamp.date_stamp, config.region, config.service)
        return (
            f"{ALGORITHM}\n"
            f"{timestamp.amz_date}\n"
            f"{scope}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def signing_key(
        self, *, secret_key: str, date_stamp: str, region: str, service: str
    ) -> bytes:
        """Derive the signing key scoped to one date, region and service.

        Intermediate keys stay as raw bytes.
        """
        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=date_stamp)
        k_region = self._hash(key=k_date, value=region)
        k_service = self._hash(key=k_region, value=service)
        return self._hash(key=k_service, value=SCOPE_TERMINATOR)

    def signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        signed_headers_str = ";".join(signed_headers)
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()
