"""Abstract base class for credential-transmission strategies.

This module defines the two foundational types of the broker:

- :class:`PreparedRequest` -- a plain container for the headers and form
  fields a strategy contributes to the token request.
- :class:`Strategy` -- the abstract base class every transmission method
  must extend.

To add a strategy, subclass :class:`Strategy`, set :attr:`~Strategy.name`,
and implement :meth:`~Strategy.prepare`. The shared headers
(``Content-Type`` and ``Accept``) and the ``grant_type`` field are added by
:meth:`Strategy.build`; subclasses only add what is specific to them.

See Also:
    :mod:`tokenbroker.broker.strategies` for the built-in strategies and
    the name registry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tokenbroker.models import Credentials

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
GRANT_TYPE = "client_credentials"


class PreparedRequest:
    """Headers and form fields for one token request.

    Args:
        headers: HTTP headers to send.
        form: Fields to form-encode into the request body.

    Example::

        req = PreparedRequest(headers={"Accept": "application/json"},
                              form={"grant_type": "client_credentials"})
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        form: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.form = form or {}


class Strategy(ABC):
    """Abstract base class for credential-transmission strategies.

    Args:
        access_type: Optional fixed ``access_type`` marker added to the form
            body alongside the grant type.
    """

    def __init__(self, access_type: Optional[str] = None) -> None:
        self._access_type = access_type

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the registry name of this strategy (``"basic"``, ``"body"``)."""
        ...

    @abstractmethod
    def prepare(self, credentials: Credentials, request: PreparedRequest) -> None:
        """Place *credentials* into *request* (headers or form)."""
        ...

    def build(self, credentials: Credentials) -> PreparedRequest:
        """Build the complete request for *credentials*.

        Returns:
            A :class:`PreparedRequest` carrying ``Content-Type``, ``Accept``,
            ``grant_type`` and whatever :meth:`prepare` adds.
        """
        request = PreparedRequest(
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                "Accept": "application/json",
            },
            form={"grant_type": GRANT_TYPE},
        )
        if self._access_type:
            request.form["access_type"] = self._access_type
        self.prepare(credentials, request)
        return request

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
