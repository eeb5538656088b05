"""
Loading the credentials from the usual places: kubeconfigs and service accounts.

Authentication capabilities are limited to keep the code short & simple.
No parsing or sophisticated multi-step token retrieval is performed
(e.g. no exec-plugins, no token refreshing of the auth-providers).
For anything more complex, construct `ConnectionInfo` directly,
or pass a pre-configured aiohttp session via `AiohttpSession`.
"""
import os
from typing import Any, Dict, Optional

import yaml

from kubetyped._cogs.structs import credentials

# As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
SERVICE_ACCOUNT_TOKEN_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/token'
SERVICE_ACCOUNT_NAMESPACE_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/namespace'
SERVICE_ACCOUNT_CA_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/ca.crt'


def has_service_account() -> bool:
    return os.path.exists(SERVICE_ACCOUNT_TOKEN_PATH)


def login_with_service_account() -> Optional[credentials.ConnectionInfo]:
    if os.path.exists(SERVICE_ACCOUNT_TOKEN_PATH):
        with open(SERVICE_ACCOUNT_TOKEN_PATH, encoding='utf-8') as f:
            token = f.read().strip()

        namespace: Optional[str] = None
        if os.path.exists(SERVICE_ACCOUNT_NAMESPACE_PATH):
            with open(SERVICE_ACCOUNT_NAMESPACE_PATH, encoding='utf-8') as f:
                namespace = f.read().strip()

        return credentials.ConnectionInfo(
            server='https://kubernetes.default.svc',
            ca_path=SERVICE_ACCOUNT_CA_PATH if os.path.exists(SERVICE_ACCOUNT_CA_PATH) else None,
            token=token or None,
            default_namespace=namespace or None,
        )
    else:
        return None


def has_kubeconfig() -> bool:
    env_var_set = bool(os.environ.get('KUBECONFIG'))
    file_exists = os.path.exists(os.path.expanduser('~/.kube/config'))
    return env_var_set or file_exists


def login_with_kubeconfig(
        *,
        context: Optional[str] = None,
) -> Optional[credentials.ConnectionInfo]:
    """
    Get the raw connection data from the kubeconfig files.

    The files are taken from ``$KUBECONFIG`` (possibly multiple ones),
    or from ``~/.kube/config`` if the variable is not set.
    As prescribed, the first found value of every named entry wins.

    The context is the current one unless explicitly specified.
    """

    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    kubeconfig = os.environ.get('KUBECONFIG')
    if not kubeconfig and os.path.exists(os.path.expanduser('~/.kube/config')):
        kubeconfig = '~/.kube/config'
    if not kubeconfig:
        return None

    paths = [path.strip() for path in kubeconfig.split(os.pathsep)]
    paths = [os.path.expanduser(path) for path in paths if path]

    # As prescribed: if the file is absent or non-deserialisable, then fail. The first value wins.
    current_context: Optional[str] = None
    contexts: Dict[Any, Any] = {}
    clusters: Dict[Any, Any] = {}
    users: Dict[Any, Any] = {}
    for path in paths:

        try:
            with open(path, encoding='utf-8') as f:
                config = yaml.safe_load(f.read()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise credentials.LoginError(f"Cannot read the kubeconfig {path!r}: {e}") from e

        if current_context is None:
            current_context = config.get('current-context')
        for item in config.get('contexts', None) or []:
            if item['name'] not in contexts:
                contexts[item['name']] = item.get('context') or {}
        for item in config.get('clusters', None) or []:
            if item['name'] not in clusters:
                clusters[item['name']] = item.get('cluster') or {}
        for item in config.get('users', None) or []:
            if item['name'] not in users:
                users[item['name']] = item.get('user') or {}

    # Once fully parsed, use the requested or current context only.
    context_name = context if context is not None else current_context
    if context_name is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    if context_name not in contexts:
        raise credentials.LoginError(f'Context {context_name!r} is not found in kubeconfigs.')
    kube_context = contexts[context_name]
    cluster = clusters.get(kube_context.get('cluster'), {})
    user = users.get(kube_context.get('user'), {})
    if not cluster.get('server'):
        raise credentials.LoginError(f'No server is defined for the context {context_name!r}.')

    # Unlike some other clients, we do not make a fake API request to refresh the token.
    provider_token = user.get('auth-provider', {}).get('config', {}).get('access-token')

    # Map the retrieved fields into the credentials object.
    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or provider_token,
        default_namespace=kube_context.get('namespace'),
    )
