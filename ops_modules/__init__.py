"""
ops_modules -- Business modules of the operations console.

Each module is a thin, declarative layer: models (enums and input
dataclasses), a workflow definition, and a service that validates input,
asks ``ops_services.workflow_executor`` for the transition and commits one
atomic Ledger Store batch.

    hr            leave approval, employees, attendance, payroll
    inventory     items and assets
    supply_chain  internal stock requests and issue
    procurement   purchase orders and goods receipt
    tasks         task assignment and review
"""
