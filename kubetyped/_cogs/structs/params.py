"""
Parameters of the API calls, as accepted by the typed handles.

Every class knows how to render itself into the query parameters
(and, for deletions and patches, into the request body or headers).
All of them are immutable, so one instance can be reused for many calls.
"""
import dataclasses
import enum
from typing import Any, Dict, Optional

from kubetyped._cogs.clients import errors


class PropagationPolicy(str, enum.Enum):
    ORPHAN = 'Orphan'
    BACKGROUND = 'Background'
    FOREGROUND = 'Foreground'


class PatchStrategy(enum.Enum):
    """ Patch formats and their content types, as understood by K8s API. """
    MERGE = 'application/merge-patch+json'
    JSON = 'application/json-patch+json'
    STRATEGIC = 'application/strategic-merge-patch+json'
    APPLY = 'application/apply-patch+yaml'


@dataclasses.dataclass(frozen=True)
class ListParams:
    """
    Filtering and paging of the listings; also used for watching.

    The timeout is the server-side limit of the request duration (in seconds);
    it is usually used with the watch-streams only.
    """
    label_selector: Optional[str] = None
    field_selector: Optional[str] = None
    timeout: Optional[int] = None
    limit: Optional[int] = None
    continue_token: Optional[str] = None
    allow_bookmarks: bool = False

    def as_query(self) -> Dict[str, str]:
        if self.limit is not None and self.limit <= 0:
            raise errors.ConfigError(f"The limit must be positive, got {self.limit!r}.")
        if self.timeout is not None and self.timeout < 0:
            raise errors.ConfigError(f"The timeout cannot be negative, got {self.timeout!r}.")
        query: Dict[str, str] = {}
        if self.label_selector:
            query['labelSelector'] = self.label_selector
        if self.field_selector:
            query['fieldSelector'] = self.field_selector
        if self.timeout is not None:
            query['timeoutSeconds'] = str(self.timeout)
        if self.limit is not None:
            query['limit'] = str(self.limit)
        if self.continue_token:
            query['continue'] = self.continue_token
        if self.allow_bookmarks:
            query['allowWatchBookmarks'] = 'true'
        return query


@dataclasses.dataclass(frozen=True)
class PostParams:
    dry_run: bool = False
    field_manager: Optional[str] = None

    def as_query(self) -> Dict[str, str]:
        query: Dict[str, str] = {}
        if self.dry_run:
            query['dryRun'] = 'All'
        if self.field_manager:
            query['fieldManager'] = self.field_manager
        return query


@dataclasses.dataclass(frozen=True)
class DeleteParams:
    """
    Deletion options, sent as the ``DeleteOptions`` body of the request.

    The preconditions (uid and/or resource version) make the deletion
    fail with a conflict if the object has changed since it was seen.
    """
    dry_run: bool = False
    grace_period_seconds: Optional[int] = None
    propagation_policy: Optional[PropagationPolicy] = None
    precondition_uid: Optional[str] = None
    precondition_resource_version: Optional[str] = None

    def as_body(self) -> Dict[str, Any]:
        if self.grace_period_seconds is not None and self.grace_period_seconds < 0:
            raise errors.ConfigError(f"The grace period cannot be negative, "
                                     f"got {self.grace_period_seconds!r}.")
        body: Dict[str, Any] = {'apiVersion': 'v1', 'kind': 'DeleteOptions'}
        if self.dry_run:
            body['dryRun'] = ['All']
        if self.grace_period_seconds is not None:
            body['gracePeriodSeconds'] = self.grace_period_seconds
        if self.propagation_policy is not None:
            body['propagationPolicy'] = PropagationPolicy(self.propagation_policy).value
        preconditions: Dict[str, str] = {}
        if self.precondition_uid is not None:
            preconditions['uid'] = self.precondition_uid
        if self.precondition_resource_version is not None:
            preconditions['resourceVersion'] = self.precondition_resource_version
        if preconditions:
            body['preconditions'] = preconditions
        return body


@dataclasses.dataclass(frozen=True)
class PatchParams:
    """
    Patching options: the patch format, and the server-side apply specifics.

    Forcing is only meaningful for the server-side apply, which also requires
    the field manager to be set (to know whose fields are being applied).
    """
    dry_run: bool = False
    strategy: PatchStrategy = PatchStrategy.MERGE
    force: bool = False
    field_manager: Optional[str] = None

    @property
    def content_type(self) -> str:
        return self.strategy.value

    def as_query(self) -> Dict[str, str]:
        if self.force and self.strategy is not PatchStrategy.APPLY:
            raise errors.ConfigError("Forcing is only supported for the server-side apply patches.")
        if self.strategy is PatchStrategy.APPLY and not self.field_manager:
            raise errors.ConfigError("A field manager is required for the server-side apply patches.")
        query: Dict[str, str] = {}
        if self.dry_run:
            query['dryRun'] = 'All'
        if self.force:
            query['force'] = 'true'
        if self.field_manager:
            query['fieldManager'] = self.field_manager
        return query
