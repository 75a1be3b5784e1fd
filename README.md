# dnspipe

dnspipe is a set of small DNS plugins that run one after another on a
query. Each plugin rewrites the query, builds or edits the response, or
answers a yes/no question about the query or its response. The package
also has a command-line tool that writes and converts configuration files
and probes DNS servers over TCP and TLS.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The chain

`dnspipe.chain` holds the core:

- `QueryContext(query, client_addr=None)` carries a `dns.message.Message`
  query, a copy of the query as it first arrived (`original_query`), the
  current `response`, the client address, an id, a start time and a set of
  marks. `set_response` replaces or drops the response, `copy` returns an
  independent copy, `add_mark` / `has_mark` handle marks, and
  `allocate_mark()` hands out a fresh mark id.
- `build_chain(executables)` links executables into `ChainNode`s and returns
  the head; `exec_chain(qctx, node)` runs a context through a chain.
- `Sequence(executables)` runs its own chain, then goes on with the outer
  one. `Return()` stops the chain it stands in.

An executable is any object with `async def exec(self, qctx, next_node)`;
it decides itself whether and when to call `exec_chain(qctx, next_node)`.
A matcher is any object with `def match(self, qctx) -> bool`.

## Executable plugins

All in `dnspipe.plugins`:

- `blackhole.BlackHole(ipv4=(), ipv6=(), rcode=0)`: A and AAAA queries get
  the configured addresses (TTL 3600) when there are any; otherwise the
  response becomes an empty reply with `rcode`, or is dropped when `rcode`
  is negative. Addresses of the wrong family raise `ValueError`.
- `bufsize.BufSize(size=0)`: lowers a query's EDNS0 UDP payload size to
  `size`, kept within 512..4096.
- `ttl.TTL(maximum_ttl=0, minimal_ttl=0)`: clamps the TTLs of every record
  set in the response; a limit of zero is not applied.
- `sleep.Sleep(duration_ms=0)`: waits, then runs the rest of the chain.
- `misc.MiscOptimizer()`: refuses unusual queries (see
  `misc.is_unusual_query`) with REFUSED, caps the EDNS0 UDP size at 1200,
  and after the chain keeps only A/AAAA answers of the queried type,
  renamed to the question and shuffled, removes EDNS0 padding from the
  response and removes EDNS0 from the response when the query had none.
- `misc.DCName()`: only the trim, rename and shuffle of A/AAAA answers.
- `edns0_filter.Edns0Filter(no_edns=False, keep=(), discard=())`: removes
  the whole EDNS0 record, or keeps only the `keep` option codes, or removes
  the `discard` codes, in that order of priority; with none set, all
  options are removed. `apply(query)` does the same without a chain.
- `dual_selector.DualSelector(mode=Mode.PREFER_IPV4, wait_timeout_ms=0)`:
  for the address query of the non-preferred family, sends the query of
  the other family alongside it; if that one has answers, the original
  gets an empty reply. If the original finishes first, the other is
  awaited for at most `wait_timeout_ms` (250 ms by default).
  `msg_answer_has_type(msg, rdtype)` is the test it uses.
- `iptoshell.IpToShell(set_bash_name4="", set_bash_name6="", mask4=0,
  mask6=0, tagnum=0, enabled=None)`: for each A/AAAA answer runs the
  configured program with the address, the mask (default 24 / 32), the
  masked prefix, `tagnum` and the question name as arguments.
  `build_commands(response)` returns those argument lists. Commands run
  only on Linux unless `enabled` is given; failures are logged and the
  chain continues.

## Matchers

- `query_matcher.QueryMatcher(client_ip=(), ecs=(), domain=(), qtype=(),
  qclass=())` matches when every configured condition holds. `client_ip`
  and `ecs` take addresses or CIDRs; `domain` takes rules written as
  `full:`, `domain:`, `keyword:`, `regexp:` or a bare domain (matched as
  the domain and its subdomains); `qtype` and `qclass` take numeric codes.
- `query_matcher.QueryIsEdns0()` matches queries carrying EDNS0.
- `response_matcher.HasValidAnswer()` matches responses with an answer for
  one of the questions.
- `response_matcher.RcodeMatcher(rcodes)` matches responses with one of the
  given rcodes.

## Helpers

- `dnspipe.ptr.parse_ptr_name(fqdn)` turns an `.in-addr.arpa.` or
  `.ip6.arpa.` name back into an address (`ValueError` otherwise);
  `reverse4` and `reverse6` do the label work.
- `dnspipe.strutil`: `split_line`, `remove_comment`, `split_string2`,
  `split_scheme_and_host`, `get_ip_from_addr`.
- `dnspipe.errors.JointErrors` collects errors; `build()` returns None,
  the single error, or the collection.
- `dnspipe.certs.load_cert_pool(paths)` reads PEM certificates;
  `generate_certificate(dns_name)` makes a self-signed ECDSA P-256 server
  certificate and returns `(cert_pem, key_pem)`.

## Example

```python
import asyncio

import dns.message

from dnspipe.chain import QueryContext, build_chain, exec_chain
from dnspipe.plugins.blackhole import BlackHole
from dnspipe.plugins.ttl import TTL
from dnspipe.ptr import parse_ptr_name

chain = build_chain([BlackHole(ipv4=["192.0.2.1"]), TTL(maximum_ttl=60)])
qctx = QueryContext(dns.message.make_query("example.com.", "A"))
asyncio.run(exec_chain(qctx, chain))
print(qctx.response.answer)

print(parse_ptr_name("4.4.8.8.in-addr.arpa."))  # 8.8.4.4
```

## Command line

```
dnspipe --help
```

Configuration files (`json`, `toml`, `yaml`, `yml`, chosen by extension):

```
dnspipe config gen config.yaml
dnspipe config conv -i config.yaml -o config.toml
```

`gen` writes a template configuration with one forwarding plugin and UDP
and TCP listeners on `127.0.0.1:5533`. `conv` rewrites a configuration in
another format, with map keys in lower case; it refuses to overwrite an
existing output file.

Server probes, for `tcp://` or `tls://` addresses (default ports 53 and
853):

```
dnspipe probe conn-reuse tls://dns.example.com
dnspipe probe pipeline tcp://192.0.2.53
dnspipe probe idle-timeout tcp://192.0.2.53:53
```

- `conn-reuse` sends three queries over one connection (RFC 1035).
- `pipeline` sends five queries at once and reports whether answers came
  back out of order (RFC 7766).
- `idle-timeout` reports how long the server keeps an idle connection open.

Results are logged; the exit status is 1 on failure.

## What it does not do

dnspipe does not listen for DNS queries or run a server, and nothing reads
the configuration files that `config gen` writes. It has no plugins that
forward queries to upstream resolvers, cache responses, answer from zone
files or hosts lists, or add EDNS Client Subnet options. Chains are
assembled in Python code with `build_chain`.