#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2026 Confluent Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
import argparse
import logging
import signal
import sys

from confluent_kafka import KafkaError, KafkaException, libversion

from . import __version__
from .config import CONFIGURATION_URL, ClientConfig, parse_offset
from .consumer import consumer_run
from .context import RunContext
from .delimiter import parse_delim
from .error import FatalError, UsageError, error_string
from .format import JSONRenderer, OutputRenderer, compile_format
from .framing import InputFramer
from .metadata import metadata_list
from .producer import PARTITION_UA, producer_run

logger = logging.getLogger('kafkacat')

FORMAT_HELP = """\
Format string tokens:
  %s                 Message payload
  %S                 Message payload length (or -1 for NULL)
  %k                 Message key
  %K                 Message key length (or -1 for NULL)
  %t                 Topic
  %p                 Partition
  %o                 Message offset
  \\n \\r \\t           Newlines, tab
  \\xXX \\xNNN         Any ASCII character
 Example:
  -f 'Topic %t [%p] at offset %o: key %k: %s\\n'

Consumer mode (writes messages to stdout):
  kafkacat -b <broker> -t <topic> -p <partition>
 or:
  kafkacat -C -b ...

Producer mode (reads messages from stdin):
  ... | kafkacat -b <broker> -t <topic> -p <partition>
 or:
  kafkacat -P -b ...

Metadata listing:
  kafkacat -L -b <broker> [-t <topic>]
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser exiting with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, "Error: {}\n".format(message))


def build_parser():
    parser = _ArgumentParser(
        prog='kafkacat',
        description='kafkacat - Apache Kafka producer and consumer tool',
        epilog=FORMAT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument('--version', action='version',
                        version='%(prog)s {} (librdkafka {})'.format(__version__, libversion()[0]))

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('-P', dest='mode', action='store_const', const='P', help='Produce mode')
    mode.add_argument('-C', dest='mode', action='store_const', const='C', help='Consume mode')
    mode.add_argument('-L', dest='mode', action='store_const', const='L', help='Metadata list mode')

    general = parser.add_argument_group('General options')
    general.add_argument('-t', dest='topic', help='Topic to consume from, produce to, or list')
    general.add_argument('-p', dest='partition', type=int, default=PARTITION_UA, help='Partition')
    general.add_argument('-b', dest='brokers', help='Bootstrap broker(s) (host[:port])')
    general.add_argument('-D', dest='delim', default='\n',
                         help='Message delimiter character: a-z.. | \\n | \\t | \\xNN (default: \\n)')
    general.add_argument('-K', dest='key_delim', help='Key delimiter (same format as -D)')
    general.add_argument('-c', dest='count', type=int, help='Limit message count')
    general.add_argument('-X', dest='properties', action='append', default=[], metavar='PROP=VAL',
                         help='Set client configuration property. Properties prefixed with '
                              '"topic." are applied as topic properties. '
                              '"-X dump" dumps the configuration and exits, '
                              '"-X list" shows where properties are documented.')
    general.add_argument('-d', dest='debug', metavar='DBG1,..', help='Enable client debugging contexts')
    general.add_argument('-q', dest='quiet', action='store_true', help='Be quiet (verbosity set to 0)')
    general.add_argument('-v', dest='verbose', action='count', default=0, help='Increase verbosity')

    producer = parser.add_argument_group('Producer options')
    producer.add_argument('-z', dest='compression', metavar='snappy|gzip|lz4|zstd',
                          help='Message compression. Default: none')
    producer.add_argument('-l', dest='line_mode', action='store_true',
                          help='Send messages from a file separated by delimiter, as with stdin '
                               '(only one file allowed)')
    producer.add_argument('-T', dest='tee', action='store_true',
                          help='Output sent messages to stdout, acting like tee')
    producer.add_argument('-Z', dest='null', action='store_true',
                          help='Send empty keys and messages as NULL (producer), '
                               'print NULL keys and messages as --null-str (consumer)')
    producer.add_argument('files', nargs='*', metavar='file',
                          help='Read messages from files. Without -l each file is sent as one message')

    consumer = parser.add_argument_group('Consumer options')
    consumer.add_argument('-o', dest='offset', default='beginning',
                          help='Offset to start consuming from: beginning | end | stored | '
                               '<value> (absolute offset) | -<value> (relative offset from end)')
    consumer.add_argument('-e', dest='exit_eof', action='store_true',
                          help='Exit successfully when last message received')
    consumer.add_argument('-f', dest='format', help='Output formatting string. Takes precedence over -D and -K')
    consumer.add_argument('-J', dest='json', action='store_true',
                          help='Output with JSON envelope (also applies to -L), not combinable with -f')
    consumer.add_argument('-u', dest='unbuffered', action='store_true', help='Unbuffered output')
    consumer.add_argument('--null-str', dest='null_str', default='NULL',
                          help='Text printed for NULL keys and messages with -Z (default: NULL)')

    return parser


def setup_logging(verbosity, debug=False):
    """
    Log to stderr with ``% `` prefixed lines.

    Verbosity 0 only shows errors, 1 informational messages and 2 or
    higher, or any debug contexts, debug messages.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%% %(message)s'))
    logger.handlers[:] = [handler]
    logger.propagate = False

    if debug or verbosity >= 2:
        logger.setLevel(logging.DEBUG)
    elif verbosity == 1:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.ERROR)


def error_cb(err):
    """
    Global client error callback.

    Raises:
        FatalError: when all brokers are down.
    """
    if err.code() == KafkaError._ALL_BROKERS_DOWN:
        raise FatalError("{}: terminating".format(err.str()), err)
    logger.info("ERROR: %s", err.str())


def _default_format(delim, key_delim):
    if key_delim is not None:
        return "%k{}%s{}".format(key_delim, delim)
    return "%s{}".format(delim)


def _consume(ctx, conf, args):
    out = sys.stdout.buffer

    if args.json:
        renderer = JSONRenderer(compile_format(args.delim).literal())
    else:
        program = compile_format(args.format or _default_format(args.delim, args.key_delim))
        null_str = args.null_str.encode('utf-8') if args.null else None
        renderer = OutputRenderer(program, null_str=null_str)

    try:
        consumer_run(ctx, conf, args.topic, renderer, out,
                     partition=args.partition,
                     offset=parse_offset(args.offset),
                     exit_eof=args.exit_eof,
                     unbuffered=args.unbuffered)
    finally:
        try:
            out.flush()
        except BrokenPipeError:
            pass


def _produce(ctx, conf, args):
    paths = None
    fp = sys.stdin.buffer

    if args.files and args.line_mode:
        if len(args.files) > 1:
            raise FatalError("Only one file allowed for line mode (-l)")
        try:
            fp = open(args.files[0], 'rb')
        except OSError as e:
            raise FatalError("Cannot open {}: {}".format(args.files[0], e.strerror))
    elif args.files:
        paths = args.files

    key_delim = parse_delim(args.key_delim) if args.key_delim is not None else None
    framer = InputFramer(fp, parse_delim(args.delim), key_delim=key_delim, null=args.null)
    tee = sys.stdout.buffer if args.tee else None

    try:
        producer_run(ctx, conf, args.topic, partition=args.partition,
                     framer=framer, paths=paths, tee=tee)
    finally:
        if fp is not sys.stdin.buffer:
            fp.close()
        if tee is not None:
            tee.flush()


def run(argv=None):
    """
    Parse ``argv`` and run the selected mode.

    Returns:
        int: the process exit code.

    Raises:
        UsageError: on invalid usage.

        FatalError: on unrecoverable errors.
    """
    args = build_parser().parse_args(argv)

    verbosity = 0 if args.quiet else 1 + args.verbose
    setup_logging(verbosity, debug=bool(args.debug))

    conf = ClientConfig()
    if args.debug:
        conf.set('debug', args.debug)
    if args.compression:
        conf.set('compression.codec', args.compression)

    dump = False
    for prop in args.properties:
        if prop in ('list', 'help'):
            sys.stdout.write("Configuration properties are documented at {}\n".format(CONFIGURATION_URL))
            return 0
        if prop == 'dump':
            dump = True
            continue
        conf.set_property(prop)

    if not args.brokers:
        raise UsageError("-b <broker,..> missing")

    mode = args.mode
    if mode is None:
        mode = 'C' if sys.stdin.isatty() else 'P'
        logger.info("Auto-selecting %s mode (use -P or -C to override)",
                    "Consumer" if mode == 'C' else "Producer")

    if mode != 'L' and not args.topic:
        raise UsageError("-t <topic> missing")

    if args.files and mode != 'P':
        raise UsageError("file list only allowed in produce mode")

    if args.json and args.format and mode == 'C':
        raise UsageError("-J and -f are mutually exclusive")

    conf.set('bootstrap.servers', args.brokers)

    if dump:
        conf.dump(sys.stdout)
        return 0

    conf.set('error_cb', error_cb)
    conf.set('logger', logging.getLogger('kafkacat.rdkafka'))

    ctx = RunContext(msg_cnt=args.count)
    signal.signal(signal.SIGINT, ctx.terminate)
    signal.signal(signal.SIGTERM, ctx.terminate)

    if mode == 'C':
        _consume(ctx, conf.as_dict(), args)
    elif mode == 'P':
        _produce(ctx, conf.as_dict(), args)
    else:
        metadata_list(conf.as_dict(), sys.stdout, topic=args.topic, json_output=args.json)

    return ctx.exitcode


def main(argv=None):
    try:
        return run(argv)
    except UsageError as e:
        build_parser().print_usage(sys.stderr)
        sys.stderr.write("Error: {}\n".format(e))
        return 1
    except KafkaException as e:
        logger.debug("Fatal error", exc_info=True)
        reason = str(e) if isinstance(e, FatalError) else error_string(e)
        sys.stderr.write("% ERROR: {}\n".format(reason))
        return 1


if __name__ == '__main__':
    sys.exit(main())
