# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS Gateway Signer applies AWS Signature Version 4 to requests sent to API Gateway
(``execute-api``), including requests routed through a custom domain."""

from ._http import Field, Fields, QueryParam, RequestDescriptor
from ._identity import AWSCredentialIdentity
from .canonical import CanonicalForm
from .config import HostResolver, SigningConfig, SigningConfigResolver
from .credentials import credentials_from_response
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .signers import SigningMaterial, SigV4Signer
from .timestamps import SigningTimestamp

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "AWSCredentialIdentity",
    "CanonicalForm",
    "DiagnosticsSink",
    "Field",
    "Fields",
    "HostResolver",
    "LoggingDiagnosticsSink",
    "QueryParam",
    "RequestDescriptor",
    "SigV4Signer",
    "SigningConfig",
    "SigningConfigResolver",
    "SigningMaterial",
    "SigningTimestamp",
    "credentials_from_response",
)
