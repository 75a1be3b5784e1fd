"""Hands the addresses of a response to external commands."""

from __future__ import annotations

import ipaddress
import logging
import subprocess
import sys

import dns.message
import dns.rdatatype

from dnspipe.chain import ChainNode, QueryContext, exec_chain

logger = logging.getLogger(__name__)


class IpToShell:
    """Runs a command for every A/AAAA answer of a response.

    The command gets the address, the mask, the masked prefix, ``tagnum``
    and the question name as arguments. Commands run on Linux only unless
    ``enabled`` says otherwise. Failures are logged and the chain goes on.
    """

    def __init__(
        self,
        set_bash_name4: str = "",
        set_bash_name6: str = "",
        mask4: int = 0,
        mask6: int = 0,
        tagnum: int = 0,
        enabled: bool | None = None,
    ) -> None:
        self.set_bash_name4 = set_bash_name4
        self.set_bash_name6 = set_bash_name6
        self.mask4 = mask4 or 24
        self.mask6 = mask6 or 32
        self.tagnum = tagnum
        self.enabled = sys.platform.startswith("linux") if enabled is None else enabled

    def build_commands(self, response: dns.message.Message) -> list[list[str]]:
        """Return the argument lists to run for ``response``.

        Raises ValueError when an address cannot be masked.
        """
        qname = response.question[0].name.to_text() if response.question else ""
        commands: list[list[str]] = []
        for rrset in response.answer:
            if rrset.rdtype == dns.rdatatype.A:
                program, mask, kind = self.set_bash_name4, self.mask4, "A"
            elif rrset.rdtype == dns.rdatatype.AAAA:
                program, mask, kind = self.set_bash_name6, self.mask6, "AAAA"
            else:
                continue
            if not program:
                continue
            for rdata in rrset:
                addr = ipaddress.ip_address(rdata.address)
                if not 0 <= mask <= addr.max_prefixlen:
                    raise ValueError(
                        f"iptoshell to Prefix invalid {kind} record with ip: {addr}"
                    )
                prefix = ipaddress.ip_network(f"{addr}/{mask}", strict=False)
                commands.append(
                    [program, str(addr), str(mask), str(prefix), str(self.tagnum), qname]
                )
        return commands

    def _run(self, response: dns.message.Message) -> None:
        for argv in self.build_commands(response):
            try:
                subprocess.run(argv, check=True)
            except (OSError, subprocess.CalledProcessError) as exc:
                raise ValueError(f"run iptoshell record with ip: {argv[1]}: {exc}") from exc

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        r = qctx.response
        if self.enabled and r is not None:
            try:
                self._run(r)
            except ValueError as exc:
                logger.warning("failed to add response IP to shell %r: %s", qctx, exc)
        await exec_chain(qctx, next_node)