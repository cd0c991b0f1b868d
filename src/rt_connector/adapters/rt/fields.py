"""Field selections for RT REST 2.0 ``fields`` / ``fields[Relation]`` query parameters."""

from __future__ import annotations

from collections.abc import Iterable

USER_REF_FIELDS = "id,Name,RealName,EmailAddress"

TICKET_FIELDS: tuple[str, ...] = (
    "Subject",
    "Description",
    "Type",
    "Status",
    "SLA",
    "Created",
    "LastUpdated",
    "Creator",
    "LastUpdatedBy",
    "Owner",
    "Requestors",
    "Cc",
    "AdminCc",
    "CustomFields",
    "CustomRoles",
    "Queue",
    "TimeEstimated",
    "TimeWorked",
    "TimeLeft",
    "Started",
    "Starts",
    "Due",
    "Resolved",
    "Told",
    "Priority",
    "InitialPriority",
    "FinalPriority",
)

TRANSACTION_FIELDS = (
    "id,Type,Created,Creator,Description,Field,OldValue,NewValue,Data,"
    "Object,ObjectType,ObjectId,TimeTaken"
)

ATTACHMENT_LIST_FIELDS = "id,Subject,Filename,ContentType,ContentLength,Created,Creator"
ATTACHMENT_DETAIL_FIELDS = (
    "Subject,Filename,ContentType,ContentLength,Created,Creator,"
    "TransactionId,MessageId,Content,Headers"
)

QUEUE_FIELDS = "id,Name,Description,Lifecycle,SubjectTag,CorrespondAddress,CommentAddress,Disabled"

USER_FIELDS = (
    "id,Name,RealName,EmailAddress,Organization,Created,LastUpdated,Creator,LastUpdatedBy,"
    "Address1,Address2,City,State,Zip,Country,MobilePhone,HomePhone,WorkPhone,PagerPhone,"
    "Timezone,Lang,Signature,Comments,CustomFields,Gecos,NickName,Disabled,Privileged"
)


def expanded_ticket_relations() -> dict[str, str]:
    return {
        "fields[Queue]": "id,Name,Description",
        "fields[Creator]": USER_REF_FIELDS,
        "fields[LastUpdatedBy]": USER_REF_FIELDS,
        "fields[Owner]": USER_REF_FIELDS,
        "fields[Requestors]": USER_REF_FIELDS,
        "fields[Cc]": USER_REF_FIELDS,
        "fields[AdminCc]": USER_REF_FIELDS,
    }


def ticket_field_params(output_fields: Iterable[str] | None = None) -> dict[str, str]:
    selected = [f for f in (output_fields or ()) if f] or list(TICKET_FIELDS)
    return {"fields": ",".join(selected), **expanded_ticket_relations()}


def transaction_field_params() -> dict[str, str]:
    return {"fields": TRANSACTION_FIELDS, "fields[Creator]": USER_REF_FIELDS}


def user_ref_params(*relations: str) -> dict[str, str]:
    return {f"fields[{relation}]": USER_REF_FIELDS for relation in relations}


QUEUE_LIST_FIELDS = (
    "id,Name,Description,CorrespondAddress,CommentAddress,SubjectTag,Lifecycle,SortOrder,"
    "Creator,Created,LastUpdatedBy,LastUpdated,SLADisabled,Disabled"
)
