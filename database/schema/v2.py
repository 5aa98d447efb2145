"""Schema v2 - Retired listing ids.

Adds the retired_listings table recording every listing removed by its
seller, so that a removed listing id is never issued again.
"""

from .v1 import schema as v1

schema = {
    'version': 2,
    'tables': v1['tables'] + [
        {
            'name': 'retired_listings',
            'columns': [
                {'name': 'id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'record', 'type': 'JSONB', 'nullable': False},
                {'name': 'retired_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ]
        }
    ],
    'migrations': [
        '''
        CREATE TABLE IF NOT EXISTS retired_listings (
            id TEXT NOT NULL,
            record JSONB NOT NULL,
            retired_at TIMESTAMP NOT NULL DEFAULT now(),
            PRIMARY KEY (id)
        )
        '''
    ]
}
