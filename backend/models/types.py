"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where SavedSearchID expected).

Uses TypeAlias for complex types that are purely structural.
"""

from typing import Literal, NewType, TypeAlias

# ID types using NewType for type safety
SavedSearchID = NewType("SavedSearchID", str)
UserID = NewType("UserID", str)
AuditRecordID = NewType("AuditRecordID", str)
RunID = NewType("RunID", str)

# Listing and dealer ids are integer sequences in the catalog database
ListingID: TypeAlias = int
DealerID: TypeAlias = int

# Structural aliases
Frequency: TypeAlias = Literal["instant", "daily"]
AuditStatus: TypeAlias = Literal["sent", "failed"]
ListingIDList: TypeAlias = list[int]
