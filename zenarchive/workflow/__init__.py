"""Deposit workflow orchestration."""

from zenarchive.workflow.deposit_workflow import DepositWorkflow, WorkflowResult, extract_doi, extract_info

__all__ = ['DepositWorkflow', 'WorkflowResult', 'extract_doi', 'extract_info']
