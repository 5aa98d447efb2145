"""Schema v1 - Initial ledger schema.

This version includes tables for:
- Listings
- Account balances
- Sold item records
- Buyer comments and enquiries
"""

schema = {
    'version': 1,
    'tables': [
        {
            'name': 'listings',
            'columns': [
                {'name': 'id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'record', 'type': 'JSONB', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'accounts',
            'columns': [
                {'name': 'identity', 'type': 'TEXT', 'primary_key': True},
                {'name': 'balance', 'type': 'DECIMAL(20,0)', 'nullable': False, 'default': '0'},
                {'name': 'updated_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'sold_items',
            'columns': [
                {'name': 'item_id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'buyer', 'type': 'TEXT', 'nullable': False},
                {'name': 'sold_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_sold_items_buyer', 'columns': ['buyer']}
            ]
        },
        {
            'name': 'comments',
            'columns': [
                {'name': 'id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'item_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'record', 'type': 'JSONB', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_comments_item', 'columns': ['item_id']}
            ]
        },
        {
            'name': 'enquiries',
            'columns': [
                {'name': 'id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'business_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'record', 'type': 'JSONB', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_enquiries_business', 'columns': ['business_id']}
            ]
        }
    ],
    'migrations': []
}
