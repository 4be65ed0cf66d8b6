"""
Services for the registration bot and the machine game

Architecture Overview:
======================

    CLI (cli.py / rich_cli.py)
            │
            ├──────────────────────────────┐
            ▼                              ▼
    ┌───────────────────────┐     ┌───────────────────────┐
    │  RegistrationService  │     │    MachineService     │ ← Coordinators
    │  (bot loop + states)  │     │  (game position)      │
    └───────┬───────┬───────┘     └───────────┬───────────┘
            │       │                         │
            ▼       ▼                         ▼
    ┌────────────┐ ┌──────────────────┐ ┌───────────────────────────┐
    │ Account-   │ │ Registration-    │ │ SupabaseAuth /            │
    │ Service    │ │ Client (HTTP)    │ │ SupabaseTable (REST)      │
    └─────┬──────┘ └──────────────────┘ └───────────────────────────┘
          ▼
    ┌────────────┐  ┌────────────────┐
    │ LocalStore │  │ ExportService  │ ← Files
    └────────────┘  └────────────────┘
"""
