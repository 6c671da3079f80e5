"""Domain layer for spendmap application.

Services are imported from their modules (``spendmap.domain.merge`` and
so on); the database layer imports ``spendmap.domain.errors``, so this
package does not import the services itself.
"""
