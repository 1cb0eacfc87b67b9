# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class SignerWarning(UserWarning): ...


class BaseSignerException(Exception):
    """Top-level exception to capture signer-related errors."""


class MalformedInputException(BaseSignerException, ValueError):
    """A request component can't be represented in a canonical request."""


class UnmappedHostException(BaseSignerException, LookupError):
    """No signing host is configured for the requested base URL."""
