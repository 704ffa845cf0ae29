"""IDM (identity management) Flask service package.

To build the Flask app:
    from idm.flask_app import create_app

To use the domain services without Flask:
    from idm.core.employees import EmployeeService, EmployeeRepository
    from idm.core.roles import RoleService, RoleRepository
"""
# Note: flask_app is not imported here so that idm.core stays usable
# from scripts and tests without building an application.
