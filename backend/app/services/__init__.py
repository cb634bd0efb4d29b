# Services package init
"""
Notes API Backend — Services Layer
====================================

Service Inventory:
    - IdentityProvider (abstract): token → user lookup contract
    - SupabaseIdentityProvider: Supabase Auth implementation over httpx
    - TokenVerifier: Authorization header → UserIdentity | Failure
    - validate_note_payload: raw body → NotePayload | Failure
    - NoteRepository: CRUD over the notes table
    - NotePipeline: composes the above into create / list / update / delete
"""
