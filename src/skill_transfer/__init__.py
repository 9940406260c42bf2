"""Knowledge manager for skill transfer.

Serves task and motion-phase specs to a planning client:
- documents/: generic tree documents + the document store (setup, task, motion template)
- detection/: feature detector client and the feature acquirer
- engine/: spec composer and the lifecycle controller (KnowledgeManager)
- service/: get_task_spec / get_motion_spec handlers
- config/: startup parameters
"""

__version__ = "0.1.0"
