# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from eventdesk.store.events import EventMutation, EventRecord, EventStore

__all__ = ["EventMutation", "EventRecord", "EventStore"]
