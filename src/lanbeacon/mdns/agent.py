"""Discovery loop: schedule queries, intake responses, update the registry."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Callable, Dict, Optional

from ..utils.netinfo import IPAddress
from .channel import Channel
from .models import Endpoint

logger = logging.getLogger(__name__)

MappedEndpoints = Dict[IPAddress, Endpoint]


class SharedEndpoints:
    """
    Lock-guarded registry of address -> Endpoint.

    The agent is the only writer. Readers enter the context manager to get
    the live mapping while the lock is held and should leave quickly, or
    call snapshot() for a private deep copy.

    Example:
        >>> shared = SharedEndpoints()
        >>> with shared as endpoints:
        ...     len(endpoints)
        0
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._endpoints: MappedEndpoints = {}

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def __enter__(self) -> MappedEndpoints:
        self._lock.acquire()
        return self._endpoints

    def __exit__(self, *exc_info) -> None:
        self._lock.release()

    def snapshot(self) -> MappedEndpoints:
        """Brief: Deep-copy the registry under the lock.

        Inputs:
          - None.

        Outputs:
          - dict of address -> Endpoint, independent of later updates.
        """

        with self._lock:
            return copy.deepcopy(self._endpoints)

    def __len__(self) -> int:
        with self._lock:
            return len(self._endpoints)


EndpointsCallback = Callable[[SharedEndpoints], None]


class Agent:
    """
    Drives the Channel and folds responses into the shared registry.

    Inputs (constructor):
      - query_interval: Seconds between active queries.
      - passive: Listen only; never send queries.
      - filter_for: Optional source address text; responses from any other
        address are ignored.
      - receive_timeout: Seconds each receive may block before the loop
        re-checks its stop event.
      - channel: Optional pre-built Channel (mostly for tests).

    Outputs:
      - Agent instance. Raises ChannelError when the socket cannot be set up.

    Example:
        >>> agent = Agent(query_interval=5, passive=True)  # doctest: +SKIP
        >>> agent.start(lambda shared: None)  # doctest: +SKIP
    """

    def __init__(
        self,
        query_interval: float = 5,
        passive: bool = False,
        filter_for: Optional[str] = None,
        receive_timeout: Optional[float] = 1.0,
        channel: Optional[Channel] = None,
    ) -> None:
        self.channel = channel or Channel(
            query_interval, passive, receive_timeout=receive_timeout
        )
        self.endpoints = SharedEndpoints()
        self.filter_for = filter_for
        self._stop_event = threading.Event()

    @property
    def passive(self) -> bool:
        return self.channel.passive

    def stop(self) -> None:
        self._stop_event.set()

    def close(self) -> None:
        self.channel.close()

    def process_once(self, cb: Optional[EndpointsCallback] = None) -> bool:
        """Brief: Run one send/receive/update cycle.

        Inputs:
          - cb: Observer invoked with the shared registry after an update.

        Outputs:
          - bool: True when the registry was updated (and cb invoked).

        Raises:
          - OSError: fatal socket errors from the receive.
          - InterfaceLookupError: when a new endpoint's locality check fails.
        """

        self.channel.send_query_if_due()

        received = self.channel.receive()
        if received is None:
            return False
        source_ip, packet = received

        if self.filter_for is not None and str(source_ip) != self.filter_for:
            logger.debug(
                "ignoring response from %s (filter %s)", source_ip, self.filter_for
            )
            return False

        records = list(packet.records())
        if not records:
            return False

        with self.endpoints as endpoints:
            endpoint = endpoints.get(source_ip)
            if endpoint is not None:
                endpoint.add_services(records)
            else:
                endpoints[source_ip] = Endpoint.with_services(source_ip, records)
                logger.info("new endpoint %s", source_ip)

        if cb is not None:
            cb(self.endpoints)
        return True

    def start(
        self,
        cb: Optional[EndpointsCallback] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Brief: Run the discovery loop until stopped.

        Inputs:
          - cb: Observer invoked with the shared registry after each update.
          - stop_event: Optional external event; the loop also honours the
            agent's own stop().

        Outputs:
          - None; returns once a stop event is set. Socket errors other than
            a receive timeout propagate and end the loop.
        """

        logger.info(
            "started in %s mode ...", "passive" if self.passive else "active"
        )

        while not self._stop_event.is_set():
            if stop_event is not None and stop_event.is_set():
                break
            self.process_once(cb)

        logger.info("discovery loop stopped")
