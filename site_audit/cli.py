# === FILE: site_audit/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point for the SiteAudit crawler.

Commands:
  crawl URL   Crawl a site and print or save the report
  config      Show the effective crawl options

Global options:
  --config PATH       YAML/JSON options file (built-in defaults if omitted)
  --limit INT         Max pages to crawl (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only if omitted)
  --log-format FORMAT Logging format (e.g. "%(asctime)s %(levelname)s %(message)s")

crawl options:
  --max-depth, --delay, --user-agent, --respect-robots/--ignore-robots,
  --follow-external/--same-host, --sitemap/--no-sitemap, --allow-private
  --json PATH         Save the JSON report to a file
  --html PATH         Save the HTML report to a file
  --template DIR      Directory with the Jinja2 template
  --pretty            Indent JSON printed to stdout
  --crawl-timeout SEC Stop the crawl after SEC seconds and report what was found

Example:
  site-audit --limit 50 crawl https://example.com --json report.json --max-depth 2
"""
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_audit import __version__
from site_audit.config import CrawlOptions, load_config
from site_audit.engine import Engine
from site_audit.logger import init_logging
from site_audit.report import DEFAULT_TEMPLATE_DIR
from site_audit.report.html_report import render_html
from site_audit.report.json_report import render_json
from site_audit.utils import InvalidUrlError

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAudit, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON options file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Max pages to crawl (overrides max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (stdout only if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Format string for log records'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """SiteAudit command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        options = load_config(config_path) if config_path else CrawlOptions()
        if limit is not None:
            options = options.merged(max_pages=limit)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['options'] = options


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-depth', type=click.IntRange(min=0), default=None, help='Max link depth')
@click.option('--delay', type=click.FloatRange(min=0), default=None,
              help='Seconds to wait between requests')
@click.option('--user-agent', default=None,
              help='Named agent (default, google, facebook, ...) or raw User-Agent')
@click.option('--respect-robots/--ignore-robots', 'respect_robots', default=None,
              help='Honour robots.txt disallow rules')
@click.option('--follow-external/--same-host', 'follow_external', default=None,
              help='Also crawl links to other hosts')
@click.option('--sitemap/--no-sitemap', 'seed_sitemap', default=None,
              help='Seed the crawl from sitemap.xml')
@click.option('--allow-private/--no-allow-private', 'allow_private', default=None,
              help='Allow loopback and private network hosts')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=DEFAULT_TEMPLATE_DIR,
    show_default=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with the Jinja2 report template'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent JSON printed to stdout'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=float,
    default=None,
    help='Overall crawl time limit (seconds)'
)
@click.pass_context
def crawl(ctx, url, max_depth, delay, user_agent, respect_robots, follow_external,
          seed_sitemap, allow_private, json_output, html_output, template_dir, pretty,
          crawl_timeout):
    """Crawl URL and generate reports."""
    try:
        options = ctx.obj['options'].merged(
            max_depth=max_depth,
            delay=delay,
            user_agent=user_agent,
            respect_robots=respect_robots,
            follow_external_links=follow_external,
            seed_sitemap=seed_sitemap,
            allow_private_networks=allow_private,
        )
    except ValidationError as e:
        print_error(f'Invalid crawl options: {e}')
    try:
        result = Engine(options).crawl(url, timeout=crawl_timeout)
    except InvalidUrlError as e:
        print_error(f'Invalid URL: {e}')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    # Nothing to save: print to stdout
    if not json_output and not html_output:
        click.echo(result.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(result, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(result, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective crawl options as JSON."""
    options = ctx.obj['options']
    click.echo(options.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
