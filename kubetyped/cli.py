import asyncio
import contextlib
import dataclasses
import functools
import json
from typing import Any, AsyncIterator, Callable, Optional

import click
import yaml

from kubetyped._cogs.clients import api, deleting, errors, piggybacking, watching
from kubetyped._cogs.configs import configuration
from kubetyped._cogs.helpers import loggers
from kubetyped._cogs.structs import bodies, credentials, params, references
from kubetyped._core.apis import typed

# The failures that are reported to the user as messages, not as stack traces.
USER_ERRORS = (
    errors.ConfigError,
    errors.DecodeError,
    errors.APIError,
    errors.APINetworkError,
    credentials.LoginError,
)


@dataclasses.dataclass()
class CLIControls:
    """ The controls which are impossible to pass via CLI, e.g. a pre-made client. """
    client: Optional[api.APIClient] = None
    settings: Optional[configuration.ClientSettings] = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        if isinstance(value, loggers.LogFormat):
            return value
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='plain')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.PLAIN,
                log_prefix: Optional[bool] = None,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def scope_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator for the resource kind's scope & the output format. """
    @click.option('-n', '--namespace', type=str, default=None)
    @click.option('-g', '--group', type=str, default=None)
    @click.option('-V', '--api-version', 'version', type=str, default=None)
    @click.option('--context', 'kubecontext', type=str, default=None)
    @click.option('-o', '--output', type=click.Choice(['yaml', 'json']), default='yaml')
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except USER_ERRORS as e:
            raise click.ClickException(f"{type(e).__name__}: {e}") from e

    return wrapper


@click.version_option(prog_name='kubetyped')
@click.group(name='kubetyped', context_settings=dict(
    auto_envvar_prefix='KUBETYPED',
))
def main() -> None:
    pass


@main.command()
@logging_options
@scope_options
@click.argument('plural')
@click.argument('name')
@click.make_pass_decorator(CLIControls, ensure=True)
def get(
        __controls: CLIControls,
        plural: str,
        name: str,
        namespace: Optional[str],
        group: Optional[str],
        version: Optional[str],
        kubecontext: Optional[str],
        output: str,
) -> None:
    """ Fetch one object by its name. """
    async def _get() -> Any:
        async with _connected(__controls, kubecontext) as client:
            resource_api = _make_api(client, plural, namespace=namespace, group=group, version=version)
            return await resource_api.get(name)

    obj = asyncio.run(_get())
    click.echo(_dump(obj, output=output), nl=False)


@main.command(name='list')
@logging_options
@scope_options
@click.option('-l', '--selector', 'label_selector', type=str, default=None)
@click.option('--field-selector', type=str, default=None)
@click.option('--limit', type=int, default=None)
@click.argument('plural')
@click.make_pass_decorator(CLIControls, ensure=True)
def list_(
        __controls: CLIControls,
        plural: str,
        label_selector: Optional[str],
        field_selector: Optional[str],
        limit: Optional[int],
        namespace: Optional[str],
        group: Optional[str],
        version: Optional[str],
        kubecontext: Optional[str],
        output: str,
) -> None:
    """ List the objects of a resource kind, one page. """
    lp = params.ListParams(label_selector=label_selector, field_selector=field_selector, limit=limit)

    async def _list() -> bodies.ObjectList[Any]:
        async with _connected(__controls, kubecontext) as client:
            resource_api = _make_api(client, plural, namespace=namespace, group=group, version=version)
            return await resource_api.list(lp)

    listed = asyncio.run(_list())
    metadata = {'resourceVersion': listed.resource_version}
    if listed.continue_token is not None:
        metadata['continue'] = listed.continue_token
    click.echo(_dump({'kind': 'List', 'metadata': metadata, 'items': listed.items}, output=output), nl=False)


@main.command()
@logging_options
@scope_options
@click.option('--grace-period', 'grace_period_seconds', type=int, default=None)
@click.option('--propagation', 'propagation_policy',
              type=click.Choice([v.value for v in params.PropagationPolicy]), default=None)
@click.option('--dry-run', is_flag=True)
@click.argument('plural')
@click.argument('name')
@click.make_pass_decorator(CLIControls, ensure=True)
def delete(
        __controls: CLIControls,
        plural: str,
        name: str,
        grace_period_seconds: Optional[int],
        propagation_policy: Optional[str],
        dry_run: bool,
        namespace: Optional[str],
        group: Optional[str],
        version: Optional[str],
        kubecontext: Optional[str],
        output: str,
) -> None:
    """ Delete one object by its name, and show what the server returned. """
    dp = params.DeleteParams(
        dry_run=dry_run,
        grace_period_seconds=grace_period_seconds,
        propagation_policy=params.PropagationPolicy(propagation_policy) if propagation_policy else None,
    )

    async def _delete() -> "deleting.DeletionOutcome[Any]":
        async with _connected(__controls, kubecontext) as client:
            resource_api = _make_api(client, plural, namespace=namespace, group=group, version=version)
            return await resource_api.delete(name, dp)

    outcome = asyncio.run(_delete())
    if isinstance(outcome, deleting.ObjectReturned):
        loggers.ObjectLogger(body=outcome.object).info("Deleted (the object is returned).")
        click.echo(_dump(outcome.object, output=output), nl=False)
    else:
        status = {key: val for key, val in dataclasses.asdict(outcome.status).items() if val is not None}
        loggers.logger.info(f"Deletion of {name!r} is reported as a status: {outcome.status.message!r}")
        click.echo(_dump(dict(status, kind='Status'), output=output), nl=False)


@main.command()
@logging_options
@scope_options
@click.option('-l', '--selector', 'label_selector', type=str, default=None)
@click.option('--field-selector', type=str, default=None)
@click.option('--since', 'since', type=str, default=None)
@click.option('--timeout', type=int, default=None)
@click.option('--limit', type=int, default=None, help="Stop after this many events.")
@click.argument('plural')
@click.make_pass_decorator(CLIControls, ensure=True)
def watch(
        __controls: CLIControls,
        plural: str,
        label_selector: Optional[str],
        field_selector: Optional[str],
        since: Optional[str],
        timeout: Optional[int],
        limit: Optional[int],
        namespace: Optional[str],
        group: Optional[str],
        version: Optional[str],
        kubecontext: Optional[str],
        output: str,
) -> None:
    """ Stream the changes of a resource kind until the server closes the stream. """
    if limit is not None and limit <= 0:
        raise click.BadParameter("The limit must be positive.", param_hint='--limit')
    lp = params.ListParams(label_selector=label_selector, field_selector=field_selector, timeout=timeout)

    async def _watch() -> None:
        async with _connected(__controls, kubecontext) as client:
            resource_api = _make_api(client, plural, namespace=namespace, group=group, version=version)
            count = 0
            async with contextlib.aclosing(resource_api.watch(lp, since)) as events:
                async for event in events:
                    _echo_event(event, output=output)
                    count += 1
                    if limit is not None and count >= limit:
                        break

    asyncio.run(_watch())


@contextlib.asynccontextmanager
async def _connected(controls: CLIControls, kubecontext: Optional[str]) -> AsyncIterator[api.APIClient]:
    if controls.client is not None:
        yield controls.client  # owned by the caller, not closed here.
        return

    info: Optional[credentials.ConnectionInfo]
    if kubecontext is not None or piggybacking.has_kubeconfig():
        info = piggybacking.login_with_kubeconfig(context=kubecontext)
    else:
        info = piggybacking.login_with_service_account()
    if info is None:
        raise credentials.LoginError("Neither a kubeconfig nor a service account is found.")

    async with api.APIClient(info, settings=controls.settings) as client:
        yield client


def _make_api(
        client: api.APIClient,
        plural: str,
        *,
        namespace: Optional[str],
        group: Optional[str],
        version: Optional[str],
) -> "typed.Api[Any]":
    resource = references.guess_resource(plural, group=group, version=version)
    resource_api: typed.Api[Any] = typed.Api.for_resource(client, resource)
    if namespace is None and resource.namespaced:
        namespace = client.default_namespace
    if namespace is not None:
        resource_api = resource_api.within(namespace)
    return resource_api


def _echo_event(event: "watching.WatchEvent[Any]", *, output: str) -> None:
    raw: Any
    if isinstance(event, (watching.Added, watching.Modified, watching.Deleted)):
        loggers.ObjectLogger(body=event.object).debug(f"Event {event.type} is received.")
        raw = {'type': event.type, 'object': event.object}
    elif isinstance(event, watching.Errored):
        status = {key: val for key, val in dataclasses.asdict(event.status).items() if val is not None}
        loggers.logger.warning(f"The watch-stream reported an error: {event.status.message!r}")
        raw = {'type': event.type, 'object': dict(status, kind='Status')}
    else:
        raw = {'type': event.type, 'object': {'metadata': {'resourceVersion': event.resource_version}}}

    if output == 'json':
        click.echo(json.dumps(raw))
    else:
        click.echo('---')
        click.echo(yaml.safe_dump(raw, sort_keys=False), nl=False)


def _dump(obj: Any, *, output: str) -> str:
    if output == 'json':
        return json.dumps(obj, indent=2) + '\n'
    else:
        return yaml.safe_dump(obj, sort_keys=False)
