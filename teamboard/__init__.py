# Team board: members, per-member task priorities, completed-task history
#
# Components:
#   schema.py   - Data model (TeamMember, Task, AppDocument, TaskStatus)
#   ordering.py - Splice-and-renumber used for priorities and member order
#   store.py    - TaskBoardStore: mutations and views over one document
#   workload.py - Score totals per member
#   storage.py  - JSON file persistence
#   remote.py   - Persistence through a running board server
#   config.py   - YAML configuration
