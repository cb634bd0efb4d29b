# Routes package init
"""
Notes API Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:  POST   /notes
                 GET    /notes
                 PUT    /notes/{id}
                 DELETE /notes/{id}

Routes stay THIN: they read the request, call the NotePipeline and turn its
result into a response. Authorization and state rules live in the pipeline.
"""
