"""
Client for the stream rules endpoint.

Every call builds a fresh ``ApiRequest``; the only state held is the
configuration supplied at construction.
"""

import json
import logging
from typing import Dict, Optional

from ..core.connector import ApiRequest, Transport
from ..core.exceptions import UpstreamError
from ..core.models import RuleSet, rule_ids, rules_from_payload


logger = logging.getLogger(__name__)


class RuleStore:
    """
    List, add and delete rules on the upstream service.

    Example:
        >>> store = RuleStore(transport, rules_url, bearer_token="...")
        >>> store.add_rules([Rule(value="cat has:images", tag="cats")])
        >>> store.list_rules()
    """

    def __init__(
        self,
        transport: Transport,
        rules_url: str,
        bearer_token: str,
        user_agent: str = "v2FilteredStreamPython",
        timeout: Optional[float] = 30,
    ):
        self.transport = transport
        self.rules_url = rules_url
        self.bearer_token = bearer_token
        self.user_agent = user_agent
        self.timeout = timeout

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Authorization": f"Bearer {self.bearer_token}",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _post(self, payload: dict) -> ApiRequest:
        return ApiRequest(
            url=self.rules_url,
            method="POST",
            headers=self._headers(with_body=True),
            body=json.dumps(payload),
            timeout=self.timeout,
        )

    def list_rules(self) -> RuleSet:
        """
        Return the rules currently active on the stream.

        Raises:
            UpstreamError: If the response is not a success status; the
                error carries the response body.
        """
        request = ApiRequest(
            url=self.rules_url,
            method="GET",
            headers=self._headers(),
            timeout=self.timeout,
        )
        response = self.transport.send(request)

        if not response.ok:
            raise UpstreamError(
                f"An error occurred while retrieving active rules from your stream: {response.body}",
                status_code=response.status_code,
                body=response.body,
            )

        try:
            return rules_from_payload(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError(
                f"Unexpected rules listing: {e}",
                status_code=response.status_code,
                body=response.body,
            ) from e

    def add_rules(self, rules: Optional[RuleSet]) -> None:
        """
        Add rules to the stream. No request is made for an empty set.

        Raises:
            UpstreamError: If the response is not a success status.
        """
        if not rules:
            return

        response = self.transport.send(
            self._post({"add": [rule.to_add_payload() for rule in rules]})
        )
        if not response.ok:
            raise UpstreamError(
                f"An error occurred while adding rules: {response.reason}",
                status_code=response.status_code,
                body=response.body,
            )
        logger.info(f"Added {len(rules)} rule(s)", extra={"rule_count": len(rules)})

    def delete_rules(self, rules: Optional[RuleSet]) -> None:
        """
        Delete rules from the stream by id. No request is made for an empty set.

        Raises:
            UpstreamError: If the response is not a success status.
        """
        if not rules:
            return

        ids = rule_ids(rules)
        if not ids:
            return

        response = self.transport.send(self._post({"delete": {"ids": ids}}))
        if not response.ok:
            raise UpstreamError(
                f"An error occurred while deleting your rules: {response.reason}",
                status_code=response.status_code,
                body=response.body,
            )
        logger.info(f"Deleted {len(ids)} rule(s)", extra={"rule_count": len(ids)})
