# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import shlex

from ._http import RequestDescriptor
from .config import SigningConfig
from .exceptions import MalformedInputException
from .signers import SigV4Signer
from .timestamps import SigningTimestamp


class SigV4Curl:
    """Generates a curl command with a SigV4 signature applied."""

    signer = SigV4Signer()

    @classmethod
    def generate_signed_curl_cmd(
        cls,
        *,
        config: SigningConfig,
        request: RequestDescriptor,
        base_url: str,
        timestamp: SigningTimestamp | None = None,
    ) -> str:
        """Sign ``request`` for ``config.host`` and render it as a curl command.

        :param base_url: Where the command sends the request, for example a custom
            domain in front of the API gateway.
        """
        signed_request = cls.signer.sign(
            config=config, request=request, timestamp=timestamp
        )
        return cls._construct_curl_cmd(request=signed_request, base_url=base_url)

    @classmethod
    def _construct_curl_cmd(cls, *, request: RequestDescriptor, base_url: str) -> str:
        cmd_list = ["curl"]
        cmd_list.append(f"-X {request.method.upper()}")
        for header in request.fields:
            cmd_list.append(f"-H {shlex.quote(f'{header.name}: {header.as_string()}')}")
        if request.body is not None:
            body = request.body
            # The body is passed inline on the command line, so it must be text.
            if not isinstance(body, str):
                try:
                    body = bytes(body).decode("utf-8")
                except UnicodeDecodeError as e:
                    raise MalformedInputException(
                        "Unable to render a request body that isn't valid utf-8 "
                        "as a curl argument."
                    ) from e
            cmd_list.append(f"-d {shlex.quote(body)}")
        cmd_list.append(shlex.quote(request.build_url(base_url)))
        return " ".join(cmd_list)
